"""Centralized colours and stylesheets for the student client."""

from __future__ import annotations

from exam_app.constants.ui_constants import STATUS_COLORS


class ColorPalette:
    """Colour definitions used by the student client."""

    TEXT_PRIMARY = "#111827"
    TEXT_SECONDARY = "#6B7280"
    BACKGROUND_PRIMARY = "#FFFFFF"
    BACKGROUND_SECONDARY = "#F9FAFB"
    BORDER_PRIMARY = "#D1D5DB"
    ACCENT_PRIMARY = "#4F46E5"
    ACCENT_HOVER = "#4338CA"
    SUCCESS = "#15803D"
    WARNING = "#B45309"
    ERROR = "#DC2626"


class Styles:
    """Helper class to generate Qt stylesheets."""

    @staticmethod
    def get_main_window_style() -> str:
        return f"""
            QMainWindow, QWidget {{
                background-color: {ColorPalette.BACKGROUND_SECONDARY};
                color: {ColorPalette.TEXT_PRIMARY};
                font-family: 'Segoe UI', 'Roboto', sans-serif;
                font-size: 14px;
            }}
            QGroupBox {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY};
                border: 1px solid {ColorPalette.BORDER_PRIMARY};
                border-radius: 8px;
                margin-top: 6px;
                padding-top: 12px;
            }}
            QGroupBox::title {{
                subcontrol-origin: margin;
                left: 10px;
                padding: 0 3px 0 3px;
            }}
            QPushButton {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY};
                border: 1px solid {ColorPalette.BORDER_PRIMARY};
                border-radius: 6px;
                padding: 6px 12px;
            }}
            QPushButton:checked {{
                background-color: {ColorPalette.ACCENT_PRIMARY};
                color: #FFFFFF;
            }}
        """

    @staticmethod
    def get_primary_button_style() -> str:
        return (
            f"QPushButton {{ background-color: {ColorPalette.ACCENT_PRIMARY}; color: #FFFFFF; "
            "border: none; border-radius: 6px; padding: 8px 16px; }}"
            f"QPushButton:hover {{ background-color: {ColorPalette.ACCENT_HOVER}; }}"
        )

    @staticmethod
    def get_navigator_button_style(status: str, is_current: bool) -> str:
        border = ColorPalette.ACCENT_PRIMARY if is_current else ColorPalette.BORDER_PRIMARY
        width = 2 if is_current else 1
        return (
            f"QPushButton {{ background-color: {STATUS_COLORS[status]}; "
            f"border: {width}px solid {border}; border-radius: 4px; min-width: 32px; min-height: 32px; }}"
        )

    @staticmethod
    def get_large_label_style() -> str:
        return "font-size: 16pt; font-weight: bold;"

    @staticmethod
    def get_alert_label_style() -> str:
        return f"color: {ColorPalette.ERROR}; font-size: 10pt;"

    @staticmethod
    def get_muted_label_style() -> str:
        return f"color: {ColorPalette.TEXT_SECONDARY}; font-size: 10pt;"
