"""EXIF orientation as 2D affine transforms.

Each of the eight orientation codes maps to a composition of translate,
rotate and scale operations with the same semantics as a canvas 2D context:
every call post-multiplies the current matrix, so the last operation applied
in code is the first one applied to a point.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from PIL import Image

from photoconv.config.constants import SWAPPED_ORIENTATIONS


def _snap(value: float) -> float:
    """Remove float noise from quarter-turn trigonometry."""
    rounded = round(value)
    return float(rounded) if abs(value - rounded) < 1e-12 else value


@dataclass(frozen=True)
class Affine:
    """Affine matrix ``x' = a*x + b*y + c``, ``y' = d*x + e*y + f``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    e: float = 1.0
    f: float = 0.0

    def __matmul__(self, other: Affine) -> Affine:
        return Affine(
            a=self.a * other.a + self.b * other.d,
            b=self.a * other.b + self.b * other.e,
            c=self.a * other.c + self.b * other.f + self.c,
            d=self.d * other.a + self.e * other.d,
            e=self.d * other.b + self.e * other.e,
            f=self.d * other.c + self.e * other.f + self.f,
        )

    def translate(self, tx: float, ty: float) -> Affine:
        return self @ Affine(c=tx, f=ty)

    def rotate(self, angle: float) -> Affine:
        """Rotate clockwise by ``angle`` radians (y axis points down)."""
        cos, sin = _snap(math.cos(angle)), _snap(math.sin(angle))
        return self @ Affine(a=cos, b=-sin, d=sin, e=cos)

    def scale(self, sx: float, sy: float) -> Affine:
        return self @ Affine(a=sx, e=sy)

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.b * y + self.c, self.d * x + self.e * y + self.f)

    def inverse(self) -> Affine:
        det = self.a * self.e - self.b * self.d
        if det == 0:
            raise ValueError("Affine matrix is not invertible")
        return Affine(
            a=self.e / det,
            b=-self.b / det,
            c=(self.b * self.f - self.e * self.c) / det,
            d=-self.d / det,
            e=self.a / det,
            f=(self.d * self.c - self.a * self.f) / det,
        )

    @property
    def coefficients(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    @property
    def is_identity(self) -> bool:
        return self == Affine()


IDENTITY = Affine()


@dataclass(frozen=True)
class OrientationTransform:
    """Transform for one orientation code and the canvas it draws onto."""

    code: int
    matrix: Affine
    canvas_width: int
    canvas_height: int

    @property
    def swaps_dimensions(self) -> bool:
        return self.code in SWAPPED_ORIENTATIONS


def orientation_transform(code: int, width: int, height: int) -> OrientationTransform:
    """Build the source-to-canvas transform for an EXIF orientation code.

    Args:
        code: Orientation code 1-8; anything else is treated as 1
        width: Source width in pixels
        height: Source height in pixels

    Returns:
        The affine transform plus the destination canvas size, which is
        ``(height, width)`` for codes 5-8.
    """
    m = IDENTITY
    quarter = 0.5 * math.pi

    if code == 2:
        m = m.translate(width, 0).scale(-1, 1)
    elif code == 3:
        m = m.translate(width, height).rotate(math.pi)
    elif code == 4:
        m = m.translate(0, height).scale(1, -1)
    elif code == 5:
        m = m.rotate(quarter).scale(1, -1)
    elif code == 6:
        m = m.rotate(quarter).translate(0, -height)
    elif code == 7:
        m = m.rotate(quarter).translate(width, -height).scale(-1, 1)
    elif code == 8:
        m = m.rotate(-quarter).translate(-width, 0)
    else:
        code = 1

    if code in SWAPPED_ORIENTATIONS:
        return OrientationTransform(code, m, canvas_width=height, canvas_height=width)
    return OrientationTransform(code, m, canvas_width=width, canvas_height=height)


def apply_orientation(img: Image.Image, code: int) -> Image.Image:
    """Draw ``img`` onto a new canvas through its orientation transform.

    The canvas is allocated at its final (possibly swapped) size first;
    Pillow's affine transform takes the canvas-to-source mapping, hence the
    inverse matrix.
    """
    transform = orientation_transform(code, img.width, img.height)
    if transform.matrix.is_identity:
        return img.copy()

    return img.transform(
        (transform.canvas_width, transform.canvas_height),
        Image.Transform.AFFINE,
        transform.matrix.inverse().coefficients,
        resample=Image.Resampling.NEAREST,
    )
