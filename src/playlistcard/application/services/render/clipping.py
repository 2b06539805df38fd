"""Rounded-rectangle clipping for track artwork."""

from PIL import Image, ImageDraw

from playlistcard.application.services.render.canvas import Canvas

Point = tuple[float, float]

# Samples per quadratic corner curve. 8 is plenty at artwork sizes (50px, radius 6).
CORNER_STEPS = 8
SUPERSAMPLE = 4


def _quadratic(p0: Point, control: Point, p2: Point, steps: int) -> list[Point]:
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        points.append(
            (
                u * u * p0[0] + 2 * u * t * control[0] + t * t * p2[0],
                u * u * p0[1] + 2 * u * t * control[1] + t * t * p2[1],
            )
        )
    return points


def rounded_rect_path(
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    steps: int = CORNER_STEPS,
) -> list[Point]:
    """Closed polygon of a rectangle whose corners are quadratic curves.

    Each corner curve uses the rectangle corner itself as control point, the same outline
    as ctx.quadraticCurveTo() would trace. Radius is clamped to [0, min(width, height) / 2].

    Returns:
        Polygon points in clockwise order, starting at the end of the top-left corner
    """
    radius = max(0.0, min(radius, width / 2, height / 2))
    right, bottom = x + width, y + height

    points: list[Point] = [(x + radius, y), (right - radius, y)]
    points += _quadratic((right - radius, y), (right, y), (right, y + radius), steps)
    points.append((right, bottom - radius))
    points += _quadratic((right, bottom - radius), (right, bottom), (right - radius, bottom), steps)
    points.append((x + radius, bottom))
    points += _quadratic((x + radius, bottom), (x, bottom), (x, bottom - radius), steps)
    points.append((x, y + radius))
    points += _quadratic((x, y + radius), (x, y), (x + radius, y), steps)
    return points


def rounded_rect_mask(
    size: tuple[int, int],
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    supersample: int = SUPERSAMPLE,
) -> Image.Image:
    """Canvas-sized L mask, 255 inside the rounded rectangle, antialiased edges.

    Only the rectangle's bounding box is supersampled; the rest of the mask stays 0.
    """
    mask = Image.new("L", size, 0)
    left, top = int(x), int(y)
    box_w, box_h = int(x + width + 1) - left, int(y + height + 1) - top
    if box_w <= 0 or box_h <= 0:
        return mask

    # Yo, draw the shape big and shrink it - ImageDraw.polygon has no antialiasing of its own.
    scale = max(1, supersample)
    local = [
        ((px - left) * scale, (py - top) * scale)
        for px, py in rounded_rect_path(x, y, width, height, radius)
    ]
    big = Image.new("L", (box_w * scale, box_h * scale), 0)
    ImageDraw.Draw(big).polygon(local, fill=255)
    tile = big.resize((box_w, box_h), Image.Resampling.LANCZOS) if scale > 1 else big
    mask.paste(tile, (left, top))
    return mask


def draw_rounded_image(
    canvas: Canvas,
    image: Image.Image,
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
) -> None:
    """Draw image into (x, y, width, height) clipped to rounded corners.

    The clip lives in its own saved() scope, so nothing drawn afterwards is affected.
    """
    with canvas.saved():
        canvas.clip(rounded_rect_mask(canvas.size, x, y, width, height, radius))
        canvas.draw_image(image, x, y, width, height)
