"""Core annotation engine for Boxmark."""

from .models import Box, BoxPart
from .errors import FormatError
from .box_store import BoxHandle, BoxStore
from .hit_testing import HitResult, classify, find_hit
from .edit_session import EditSession, EditMode, PointerEvent, PointerEventKind
from .config import AppConfig, ConfigManager
from .yolo_format import YOLOLabel, YOLOLabelReader, YOLOLabelWriter

__all__ = [
    "Box",
    "BoxPart",
    "FormatError",
    "BoxHandle",
    "BoxStore",
    "HitResult",
    "classify",
    "find_hit",
    "EditSession",
    "EditMode",
    "PointerEvent",
    "PointerEventKind",
    "AppConfig",
    "ConfigManager",
    "YOLOLabel",
    "YOLOLabelReader",
    "YOLOLabelWriter",
]
