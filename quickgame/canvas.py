"""Off-screen drawing surface.

A `Canvas` is an opaque RGB Pillow image the size of the window together with
the current affine transform and stroke. Drawing always goes through the
transform. When it only translates and scales, shapes use Pillow's own
primitives. Rotations and shears draw transformed polygons, and text/images
are resampled into place.

Colors are anything Pillow understands: ``(r, g, b)``, ``(r, g, b, a)``,
``"#ff8800"`` or ``"red"``. Translucent colors blend with what is already
on the canvas.
"""

from __future__ import annotations

import functools
import math
import threading
from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np
from PIL import Image
from PIL import ImageDraw
from PIL import ImageFont

Point = Tuple[float, float]

_ELLIPSE_SEGMENTS = 64
_EPSILON = 1e-12


class Stroke(NamedTuple):
    """Settings used for outlines and lines.

    width : float
        Line width in user space, scaled along with the transform.
    joint : str | None
        ``"curve"`` rounds the corners where line segments meet.
    """

    width: float = 1
    joint: Optional[str] = None


def _synchronized(fn):
    @functools.wraps(fn)
    def inner(self, *args, **kwargs):
        with self._lock:
            return fn(self, *args, **kwargs)

    return inner


def _radians(theta):
    """Transform theta from degrees to radians."""

    return theta * np.pi / 180


class Affine:
    """Namespace for 3x3 affine matrices acting on column vectors (x, y, 1)."""

    @staticmethod
    def translate(x, y):
        # fmt: off
        return np.array((
            (1, 0, x),
            (0, 1, y),
            (0, 0, 1)),
            float,
        )
        # fmt: on

    @staticmethod
    def scale(sx, sy):
        # fmt: off
        return np.array((
            (sx, 0, 0),
            (0, sy, 0),
            (0, 0, 1)),
            float,
        )
        # fmt: on

    @staticmethod
    def rotate(theta):
        """Rotation by theta degrees. Positive angles turn the x axis towards
        the y axis, which is clockwise on screen."""

        theta = _radians(theta)
        # fmt: off
        return np.array((
            (np.cos(theta), -np.sin(theta), 0),
            (np.sin(theta), np.cos(theta), 0),
            (0, 0, 1)),
            float,
        )
        # fmt: on

    @staticmethod
    def shear(shx, shy):
        # fmt: off
        return np.array((
            (1, shx, 0),
            (shy, 1, 0),
            (0, 0, 1)),
            float,
        )
        # fmt: on

    @staticmethod
    def from_array(matrix):
        """Accepts a 2x3 or 3x3 affine matrix.

        Raises
        ------
        ValueError:
            For any other shape, or a 3x3 matrix that isn't affine.
        """

        matrix = np.asarray(matrix, float)
        if matrix.shape == (2, 3):
            return np.vstack((matrix, (0, 0, 1)))
        if matrix.shape != (3, 3):
            raise ValueError(
                f"Expected a 2x3 or 3x3 matrix, got shape {matrix.shape}."
            )
        if not np.allclose(matrix[2], (0, 0, 1)):
            raise ValueError(f"Matrix is not affine: {matrix[2]=}.")
        return matrix.copy()


class Canvas:
    def __init__(self, width, height, background="black"):
        self.width = int(width)
        self.height = int(height)
        self.image = Image.new("RGB", (self.width, self.height), background)
        # RGBA ink on an RGB image blends
        self._draw = ImageDraw.Draw(self.image, "RGBA")
        self._matrix = np.identity(3)
        self._stroke = Stroke()
        self._lock = threading.RLock()

    @property
    def size(self):
        return self.width, self.height

    @property
    def matrix(self) -> np.ndarray:
        """Copy of the current 3x3 transform."""

        return self._matrix.copy()

    @property
    def stroke(self) -> Stroke:
        return self._stroke

    @_synchronized
    def frame(self) -> Image.Image:
        """An independent, fully opaque RGBA copy of the canvas as it looks
        right now."""

        return self.image.convert("RGBA")

    @_synchronized
    def clear(self, color):
        """Fill the whole canvas with one color, regardless of transform."""

        self._draw.rectangle((0, 0, self.width, self.height), fill=color)

    @_synchronized
    def fill_rect(self, x, y, width, height, color):
        if width <= 0 or height <= 0:
            return
        if self._axis_aligned():
            box = self._map_box(x, y, width, height, inclusive=False)
            if box:
                self._draw.rectangle(box, fill=color)
        else:
            self._draw.polygon(self._rect_points(x, y, width, height), fill=color)

    @_synchronized
    def draw_rect(self, x, y, width, height, color):
        if width < 0 or height < 0:
            return
        if self._axis_aligned():
            box = self._map_box(x, y, width, height, inclusive=True)
            self._draw.rectangle(box, outline=color, width=self._line_width())
        else:
            self._outline(self._rect_points(x, y, width, height), color)

    @_synchronized
    def fill_circle(self, x, y, width, height, color):
        """Fill the circle (or oval) inscribed in the given bounds."""

        if width <= 0 or height <= 0:
            return
        if self._axis_aligned():
            box = self._map_box(x, y, width, height, inclusive=False)
            if box:
                self._draw.ellipse(box, fill=color)
        else:
            points = self._ellipse_points(x, y, width, height)
            self._draw.polygon(points, fill=color)

    @_synchronized
    def draw_circle(self, x, y, width, height, color):
        """Outline the circle (or oval) inscribed in the given bounds."""

        if width < 0 or height < 0:
            return
        if self._axis_aligned():
            box = self._map_box(x, y, width, height, inclusive=True)
            self._draw.ellipse(box, outline=color, width=self._line_width())
        else:
            self._outline(self._ellipse_points(x, y, width, height), color)

    @_synchronized
    def draw_line(self, x1, y1, x2, y2, color):
        points = self._apply(((x1, y1), (x2, y2)))
        self._draw.line(points, fill=color, width=self._line_width())

    @_synchronized
    def draw_polygon(self, points: Sequence[Point], color):
        if len(points) < 2:
            return
        self._outline(self._apply(points), color)

    @_synchronized
    def fill_polygon(self, points: Sequence[Point], color):
        if len(points) < 3:
            return
        self._draw.polygon(self._apply(points), fill=color)

    @_synchronized
    def draw_text(self, x, y, text, font=None, color="white"):
        """Draw a string with its baseline starting at (x, y).

        Parameters
        ----------
        x, y : float
        text : str
        font : PIL.ImageFont.FreeTypeFont | PIL.ImageFont.ImageFont, optional
            Pillow's default font is used when omitted.
        color : Any
        """

        if not text:
            return
        font = font or ImageFont.load_default()
        left, top, right, bottom = _text_bbox(font, text)
        if self._translation_only():
            (px, py), = self._apply(((x, y),))
            _draw_text_at_baseline(self._draw, px, py, text, font, color)
            return

        layer = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
        _draw_text_at_baseline(
            ImageDraw.Draw(layer), -left, -top, text, font, color
        )
        self._composite(layer, x + left, y + top, right - left, bottom - top)

    @_synchronized
    def draw_image(self, image, x, y, width=None, height=None, src=None):
        """Draw an image, optionally stretched and/or cropped.

        Parameters
        ----------
        image : PIL.Image.Image
        x, y : float
            Top left corner in user space.
        width, height : float, optional
            Destination size. Both or neither must be given. Defaults to the
            size of the (cropped) source.
        src : tuple[int, int, int, int], optional
            ``(x, y, width, height)`` of the region of `image` to draw.
        """

        if (width is None) != (height is None):
            raise ValueError("width and height must be given together.")
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        if src is not None:
            sx, sy, sw, sh = src
            if sw <= 0 or sh <= 0:
                return
            image = image.crop((sx, sy, sx + sw, sy + sh))
        if width is None:
            width, height = image.size
        if width <= 0 or height <= 0:
            return

        if self._translation_only():
            (px, py), = self._apply(((x, y),))
            if (width, height) != image.size:
                image = image.resize(
                    (round(width), round(height)), Image.Resampling.NEAREST
                )
            self._paste(image, round(px), round(py))
        else:
            self._composite(image, x, y, width, height)

    @_synchronized
    def set_stroke(self, stroke: Stroke):
        if stroke.width <= 0:
            raise ValueError(f"Stroke width must be positive, got {stroke}.")
        self._stroke = stroke

    @_synchronized
    def translate(self, x, y):
        self._matrix = self._matrix @ Affine.translate(x, y)

    @_synchronized
    def scale(self, sx, sy):
        self._matrix = self._matrix @ Affine.scale(sx, sy)

    @_synchronized
    def rotate(self, degrees, x=None, y=None):
        """Rotate the transform, about the origin or about (x, y)."""

        if (x is None) != (y is None):
            raise ValueError("Rotation origin needs both x and y.")
        if x is None:
            self._matrix = self._matrix @ Affine.rotate(degrees)
        else:
            self._matrix = (
                self._matrix
                @ Affine.translate(x, y)
                @ Affine.rotate(degrees)
                @ Affine.translate(-x, -y)
            )

    @_synchronized
    def shear(self, shx, shy):
        self._matrix = self._matrix @ Affine.shear(shx, shy)

    @_synchronized
    def transform(self, matrix):
        """Concatenate a custom affine matrix onto the current transform."""

        self._matrix = self._matrix @ Affine.from_array(matrix)

    @_synchronized
    def set_transform(self, matrix):
        """Replace the current transform, e.g. to restore a saved `matrix`."""

        self._matrix = Affine.from_array(matrix)

    @_synchronized
    def reset_transform(self):
        self._matrix = np.identity(3)

    def _apply(self, points):
        points = np.asarray(points, float).reshape(-1, 2)
        ones = np.ones((len(points), 1))
        mapped = (self._matrix @ np.hstack((points, ones)).T).T[:, :2]
        return [tuple(p) for p in mapped.tolist()]

    def _axis_aligned(self):
        return (
            abs(self._matrix[0, 1]) < _EPSILON
            and abs(self._matrix[1, 0]) < _EPSILON
        )

    def _translation_only(self):
        return np.allclose(self._matrix[:2, :2], np.identity(2))

    def _line_width(self):
        factor = math.sqrt(abs(np.linalg.det(self._matrix[:2, :2])))
        return max(1, round(self._stroke.width * factor))

    def _map_box(self, x, y, width, height, *, inclusive):
        """Device space pixel box for an axis-aligned user space rect.

        Pillow boxes include their far edge, so filled shapes give it up.
        Returns None when nothing is left to fill.
        """

        (x0, y0), (x1, y1) = self._apply(((x, y), (x + width, y + height)))
        x0, x1 = sorted((round(x0), round(x1)))
        y0, y1 = sorted((round(y0), round(y1)))
        if inclusive:
            return x0, y0, x1, y1
        if x1 <= x0 or y1 <= y0:
            return None
        return x0, y0, x1 - 1, y1 - 1

    def _rect_points(self, x, y, width, height):
        return self._apply(
            ((x, y), (x + width, y), (x + width, y + height), (x, y + height))
        )

    def _ellipse_points(self, x, y, width, height):
        angles = np.linspace(0, 2 * np.pi, _ELLIPSE_SEGMENTS, endpoint=False)
        rx, ry = width / 2, height / 2
        points = np.column_stack(
            (x + rx + rx * np.cos(angles), y + ry + ry * np.sin(angles))
        )
        return self._apply(points)

    def _outline(self, points, color):
        closed = list(points) + [points[0]]
        self._draw.line(
            closed,
            fill=color,
            width=self._line_width(),
            joint=self._stroke.joint,
        )

    def _paste(self, image, x, y):
        """Blend an untransformed image at integer device coordinates,
        clipped to the canvas."""

        left, top = max(0, -x), max(0, -y)
        right = min(image.width, self.width - x)
        bottom = min(image.height, self.height - y)
        if right <= left or bottom <= top:
            return
        visible = image.crop((left, top, right, bottom))
        self.image.paste(visible, (x + left, y + top), visible)

    def _composite(self, image, x, y, width, height):
        """Blend `image` stretched over the user space rect through the
        current transform."""

        if abs(np.linalg.det(self._matrix[:2, :2])) < _EPSILON:
            # collapsed to a line or a point
            return
        # device -> user -> source pixel
        to_source = (
            Affine.scale(image.width / width, image.height / height)
            @ Affine.translate(-x, -y)
            @ np.linalg.inv(self._matrix)
        )
        layer = image.transform(
            self.image.size,
            Image.Transform.AFFINE,
            tuple(to_source[:2].flatten()),
            resample=Image.Resampling.NEAREST,
        )
        self.image.paste(layer, (0, 0), layer)


def _text_bbox(font, text):
    """(left, top, right, bottom) of `text` relative to its baseline origin."""

    if isinstance(font, ImageFont.FreeTypeFont):
        left, top, right, bottom = font.getbbox(text, anchor="ls")
    else:
        left, top, right, bottom = font.getbbox(text)
        top, bottom = top - bottom, 0
    return (
        math.floor(left),
        math.floor(top),
        max(math.ceil(right), math.floor(left) + 1),
        max(math.ceil(bottom), math.floor(top) + 1),
    )


def _draw_text_at_baseline(draw, x, y, text, font, color):
    if isinstance(font, ImageFont.FreeTypeFont):
        draw.text((x, y), text, font=font, fill=color, anchor="ls")
    else:
        # bitmap fonts don't support anchors
        bottom = font.getbbox(text)[3]
        draw.text((x, y - bottom), text, font=font, fill=color)
