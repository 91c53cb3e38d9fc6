"""Styling module for the ExamDesk client."""

from .styles import ColorPalette, Styles

__all__ = ["ColorPalette", "Styles"]
