"""Borderless tkinter popup that slides a GIF in from the bottom-right corner.

Runs its own Tk mainloop on the calling thread (the notifier worker) and
returns once the popup has slid out and closed.
"""

from __future__ import annotations

import io
import logging
import time
import tkinter as tk

from PIL import Image, ImageSequence, ImageTk

from .animation import popup_geometry, popup_y

log = logging.getLogger(__name__)

FRAME_MS = 1000 // 60
DEFAULT_FRAME_DELAY_MS = 100


def _load_frames(data: bytes, width: int, height: int) -> list[tuple[Image.Image, int]]:
    frames = []
    with Image.open(io.BytesIO(data)) as img:
        for frame in ImageSequence.Iterator(img):
            delay = frame.info.get("duration") or DEFAULT_FRAME_DELAY_MS
            frames.append((frame.convert("RGBA").resize((width, height)), int(delay)))
    return frames


def show_popup(
    data: bytes,
    width: int,
    height: int,
    visible_seconds: float = 5.0,
    slide_seconds: float = 0.5,
) -> None:
    frames = _load_frames(data, width, height)
    if not frames:
        log.warning("Popup image has no frames")
        return

    root = tk.Tk()
    root.overrideredirect(True)
    root.attributes("-topmost", True)

    x, visible_y, hidden_y = popup_geometry(
        root.winfo_screenwidth(), root.winfo_screenheight(), width, height
    )
    root.geometry(f"{width}x{height}+{x}+{hidden_y}")

    photos = [(ImageTk.PhotoImage(frame, master=root), delay) for frame, delay in frames]
    label = tk.Label(root, image=photos[0][0], borderwidth=0, highlightthickness=0)
    label.pack()

    started = time.monotonic()

    def play(index: int = 0) -> None:
        photo, delay = photos[index]
        label.configure(image=photo)
        if len(photos) > 1:
            root.after(delay, play, (index + 1) % len(photos))

    def move() -> None:
        y = popup_y(time.monotonic() - started, hidden_y, visible_y, slide_seconds, visible_seconds)
        if y is None:
            root.destroy()
            return
        root.geometry(f"+{x}+{y}")
        root.after(FRAME_MS, move)

    play()
    move()
    root.mainloop()
