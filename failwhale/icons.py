"""Pillow-generated tray status icons.

A 64x64 rounded "whale" blob tinted by status, drawn at runtime so no
image files need to be shipped with the package.
"""

from PIL import Image, ImageDraw

SIZE = 64
COLORS = {
    "ok": "#1f8ecd",        # ocean blue
    "polling": "#6cc3f0",   # light blue
    "offline": "#8b949e",   # grey
    "error": "#d73a49",     # red
}


def make_icon(status: str) -> Image.Image:
    color = COLORS.get(status, COLORS["offline"])
    img = Image.new("RGBA", (SIZE, SIZE), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    # Body
    draw.ellipse([4, 20, SIZE - 4, SIZE - 8], fill=color)
    # Tail
    draw.polygon([(SIZE - 12, 30), (SIZE - 2, 14), (SIZE - 2, 40)], fill=color)
    # Eye
    draw.ellipse([14, 34, 20, 40], fill="#ffffff")
    # Spout
    draw.line([(22, 18), (22, 6)], fill=color, width=3)
    return img
