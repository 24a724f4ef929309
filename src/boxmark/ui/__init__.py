"""User interface components for Boxmark."""

from .canvas import AnnotationCanvas

__all__ = ["AnnotationCanvas"]
