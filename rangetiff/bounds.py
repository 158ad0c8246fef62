from __future__ import annotations

from typing import Iterable, NamedTuple, Union

from affine import Affine

from rangetiff.windows import PixelWindow

BoundsLike = Union["Bounds", Iterable[float], dict]


class Bounds(NamedTuple):
    """
    Class to handle geographic bounds.
    """

    left: float
    bottom: float
    right: float
    top: float

    @staticmethod
    def from_inp(inp: BoundsLike) -> Bounds:
        if isinstance(inp, Bounds):
            return inp
        elif isinstance(inp, dict):
            return Bounds(**{k: float(inp[k]) for k in Bounds._fields})
        left, bottom, right, top = map(float, inp)
        return Bounds(left, bottom, right, top)

    @staticmethod
    def from_window(window: PixelWindow, transform: Affine) -> Bounds:
        """Bounds of a pixel window given the raster's affine transform."""
        xs, ys = zip(
            *[
                transform * (col, row)
                for col in (window.col_min, window.col_max)
                for row in (window.row_min, window.row_max)
            ]
        )
        return Bounds(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def __str__(self):
        return f"<Bounds(left={self.left}, bottom={self.bottom}, right={self.right}, top={self.top})>"

    @property
    def __geo_interface__(self):
        return {
            "type": "Polygon",
            "bbox": tuple(self),
            "coordinates": [
                [
                    [self.left, self.bottom],
                    [self.right, self.bottom],
                    [self.right, self.top],
                    [self.left, self.top],
                    [self.left, self.bottom],
                ]
            ],
        }
