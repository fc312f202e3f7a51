"""Popup placement and slide timeline, as plain functions of time."""

from __future__ import annotations

MARGIN = 20


def popup_geometry(
    screen_width: int, screen_height: int, width: int, height: int, margin: int = MARGIN
) -> tuple[int, int, int]:
    """Return ``(x, visible_y, hidden_y)`` for a popup in the bottom-right corner."""
    x = screen_width - width - margin
    visible_y = screen_height - height - margin
    hidden_y = screen_height + margin
    return x, visible_y, hidden_y


def slide(start: int, end: int, progress: float) -> int:
    progress = min(max(progress, 0.0), 1.0)
    return round(start + (end - start) * progress)


def popup_y(
    elapsed: float,
    hidden_y: int,
    visible_y: int,
    slide_seconds: float = 0.5,
    visible_seconds: float = 5.0,
) -> int | None:
    """Vertical position ``elapsed`` seconds after the popup appeared.

    Slides up, holds, slides back down. None once the popup should close.
    """
    if elapsed < 0:
        return hidden_y
    if slide_seconds <= 0:
        return visible_y if elapsed < visible_seconds else None
    if elapsed < slide_seconds:
        return slide(hidden_y, visible_y, elapsed / slide_seconds)
    elapsed -= slide_seconds
    if elapsed < visible_seconds:
        return visible_y
    elapsed -= visible_seconds
    if elapsed < slide_seconds:
        return slide(visible_y, hidden_y, elapsed / slide_seconds)
    return None
