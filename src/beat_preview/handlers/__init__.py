"""Pipeline handlers."""

from .preview_handler import PreviewHandler

__all__ = ["PreviewHandler"]
