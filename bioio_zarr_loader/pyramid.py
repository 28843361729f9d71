from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .exceptions import ConfigurationError
from .rgb import SpatialAxes
from .sources import ArraySource, as_array_source


@dataclass(frozen=True)
class SingleSource:
    """A single-resolution image backed by one array."""

    array: ArraySource

    @property
    def is_pyramid(self) -> bool:
        return False

    @property
    def base(self) -> ArraySource:
        return self.array

    @property
    def levels(self) -> Tuple[ArraySource, ...]:
        return (self.array,)

    @property
    def min_zoom(self) -> int:
        return 0

    def resolve(self, level: Optional[int] = None) -> ArraySource:
        return self.array

    def validate(self, axes: SpatialAxes) -> None:
        pass


@dataclass(frozen=True)
class PyramidSource:
    """
    A multiscale image: one array per resolution level, level 0 being the
    highest resolution.
    """

    levels: Tuple[ArraySource, ...]

    @property
    def is_pyramid(self) -> bool:
        return True

    @property
    def base(self) -> ArraySource:
        return self.levels[0]

    @property
    def min_zoom(self) -> int:
        return -len(self.levels)

    def resolve(self, level: Optional[int] = None) -> ArraySource:
        """
        Get the array of a resolution level (0 = highest resolution).

        Raises
        ------
        IndexError
            If the level does not exist.
        """
        if level is None:
            return self.base
        if level < 0:
            raise IndexError(
                f"Resolution level {level} out of range for {len(self.levels)} levels"
            )
        return self.levels[level]

    def validate(self, axes: SpatialAxes) -> None:
        """
        Check that all levels share the base rank and that height and width
        shrink strictly from one level to the next.
        """
        rank = len(self.base.shape)
        for lvl, arr in enumerate(self.levels):
            if len(arr.shape) != rank:
                raise ConfigurationError(
                    f"Pyramid level {lvl} has {len(arr.shape)} dimensions; "
                    f"expected {rank}"
                )
        for lvl in range(1, len(self.levels)):
            prev = self.levels[lvl - 1].shape
            curr = self.levels[lvl].shape
            if not (curr[axes.y] < prev[axes.y] and curr[axes.x] < prev[axes.x]):
                raise ConfigurationError(
                    "Pyramid levels must decrease in height and width: level "
                    f"{lvl} {curr[axes.y]}x{curr[axes.x]} is not smaller than level "
                    f"{lvl - 1} {prev[axes.y]}x{prev[axes.x]}"
                )


ImageSource = Union[SingleSource, PyramidSource]


def as_image_source(data: Any) -> ImageSource:
    """
    Build the image source for a single array or a list of pyramid levels.
    """
    if isinstance(data, (SingleSource, PyramidSource)):
        return data
    if isinstance(data, (list, tuple)):
        if len(data) == 0:
            raise ConfigurationError("Pyramid must have at least one level")
        return PyramidSource(levels=tuple(as_array_source(arr) for arr in data))
    return SingleSource(array=as_array_source(data))
