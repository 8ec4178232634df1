"""
Signature Capture

Turns a drawn stroke path, a typed name, or an uploaded image into an
opaque PNG that can be stamped onto a contract.
"""

import base64
import binascii
import io
import logging
import re
from typing import Sequence, Union

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from .exceptions import UnprocessableInputError

logger = logging.getLogger(__name__)

STROKE_CANVAS_SIZE = (400, 150)
TYPED_CANVAS_SIZE = (300, 80)
INK_COLOR = (26, 26, 26)  # #1a1a1a
BACKGROUND = (255, 255, 255)
STROKE_WIDTH = 2
TYPED_FONT_SIZE = 24

# Tried in order; the first one installed on the host is used
TYPED_FONT_CANDIDATES = (
    'DejaVuSerif-Italic.ttf',
    'LiberationSerif-Italic.ttf',
    'georgiai.ttf',
    'Georgia Italic.ttf',
)

DATA_URL_RE = re.compile(r'^data:image/[a-zA-Z+.-]+;base64,')

Point = Sequence[float]
Stroke = Sequence[Point]


def _png(image: Image.Image) -> bytes:
    out = io.BytesIO()
    image.save(out, format='PNG')
    return out.getvalue()


def _is_point(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(isinstance(v, (int, float)) for v in value)
    )


def _normalize_strokes(strokes: Union[Stroke, Sequence[Stroke]]):
    """Accept a single stroke or a list of strokes."""
    if not strokes:
        return []
    if _is_point(strokes[0]):
        strokes = [strokes]
    normalized = []
    for stroke in strokes:
        points = []
        for point in stroke or []:
            if not _is_point(point):
                raise UnprocessableInputError(f"Invalid stroke point: {point!r}", field='strokes')
            points.append((float(point[0]), float(point[1])))
        if points:
            normalized.append(points)
    return normalized


def from_strokes(strokes: Union[Stroke, Sequence[Stroke]]) -> bytes:
    """
    Draw stroke paths onto a white 400x150 canvas.

    Points are canvas pixel coordinates. A stroke with one point is
    drawn as a dot.
    """
    normalized = _normalize_strokes(strokes)
    if not normalized:
        raise UnprocessableInputError("Signature has no strokes", field='strokes')

    image = Image.new('RGB', STROKE_CANVAS_SIZE, BACKGROUND)
    draw = ImageDraw.Draw(image)
    radius = STROKE_WIDTH / 2
    for points in normalized:
        if len(points) == 1:
            x, y = points[0]
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=INK_COLOR)
        else:
            draw.line(points, fill=INK_COLOR, width=STROKE_WIDTH, joint='curve')
    return _png(image)


def _typed_font():
    for candidate in TYPED_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, TYPED_FONT_SIZE)
        except OSError:
            continue
    return ImageFont.load_default(size=TYPED_FONT_SIZE)


def from_typed_name(name: str) -> bytes:
    """Render a typed name, centered, on a bordered white 300x80 canvas."""
    name = (name or '').strip()
    if not name:
        raise UnprocessableInputError("Typed signature is blank", field='typedName')

    width, height = TYPED_CANVAS_SIZE
    image = Image.new('RGB', TYPED_CANVAS_SIZE, BACKGROUND)
    draw = ImageDraw.Draw(image)
    draw.rectangle((0, 0, width - 1, height - 1), outline=INK_COLOR, width=1)
    draw.text((width / 2, height / 2), name, fill=INK_COLOR, font=_typed_font(), anchor='mm')
    return _png(image)


def decode_signature_image(data: str) -> bytes:
    """
    Decode a data URL or bare base64 image into an opaque PNG.

    Transparent areas are flattened onto white so the stamp never
    shows the page through it.
    """
    if not data or not isinstance(data, str):
        raise UnprocessableInputError("Signature image is empty", field='signatureImage')
    try:
        raw = base64.b64decode(DATA_URL_RE.sub('', data.strip()), validate=True)
    except (binascii.Error, ValueError):
        raise UnprocessableInputError("Signature image is not valid base64", field='signatureImage')

    try:
        with Image.open(io.BytesIO(raw)) as source:
            source.load()
            rgba = source.convert('RGBA')
    except (UnidentifiedImageError, OSError):
        raise UnprocessableInputError("Signature image is not a readable image", field='signatureImage')

    if rgba.width == 0 or rgba.height == 0:
        raise UnprocessableInputError("Signature image has no pixels", field='signatureImage')

    flattened = Image.new('RGB', rgba.size, BACKGROUND)
    flattened.paste(rgba, mask=rgba.getchannel('A'))
    return _png(flattened)


def capture(payload: dict) -> bytes:
    """
    Build a signature PNG from a request payload.

    Exactly one of 'signatureImage', 'strokes', 'typedName' must be given.
    """
    provided = [key for key in ('signatureImage', 'strokes', 'typedName') if payload.get(key)]
    if len(provided) != 1:
        raise UnprocessableInputError(
            "Provide exactly one of signatureImage, strokes, typedName", field='signature'
        )

    source = provided[0]
    logger.debug(f"Capturing signature from {source}")
    if source == 'signatureImage':
        return decode_signature_image(payload['signatureImage'])
    if source == 'strokes':
        return from_strokes(payload['strokes'])
    return from_typed_name(payload['typedName'])
