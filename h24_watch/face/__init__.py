"""Watch face drawing: geometry, colors, fill planning and rendering."""

from .canvas import Canvas
from .color_wheel import color_at, hand_color, hour_alpha
from .context import DataProviders, FaceSettings, FrameContext, build_frame_context
from .draw_ops import Circle, DrawOp, Line, Paint, Rect, Text
from .font_manager import FontManager, get_font_manager
from .geometry import DialGeometry, angle_of, degrees_from_north, project
from .meeting_fill import FillBand, FillPlan, PreviewLine, plan_fill
from .renderer import Frame, WatchFaceRenderer
from .theme import DarkModeScheduler

__all__ = [
    "Canvas",
    "Circle",
    "DarkModeScheduler",
    "DataProviders",
    "DialGeometry",
    "DrawOp",
    "FaceSettings",
    "FillBand",
    "FillPlan",
    "FontManager",
    "Frame",
    "FrameContext",
    "Line",
    "Paint",
    "PreviewLine",
    "Rect",
    "Text",
    "WatchFaceRenderer",
    "angle_of",
    "build_frame_context",
    "color_at",
    "degrees_from_north",
    "get_font_manager",
    "hand_color",
    "hour_alpha",
    "plan_fill",
    "project",
]
