"""
Boxmark - bounding-box annotation for YOLO label files.

Built with PyQt6. The core is an interaction engine that turns pointer
events into box creation, resizing and moving, plus a codec for the
normalized YOLO text format.
"""

__version__ = "1.0.0"
__author__ = "Boxmark Team"
