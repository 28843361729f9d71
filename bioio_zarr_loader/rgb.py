from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .exceptions import ConfigurationError

RGB_CHANNEL_SIZES: Tuple[int, ...] = (3, 4)


def guess_rgb(shape: Sequence[int]) -> bool:
    """
    Guess whether the trailing axis of an array holds RGB/RGBA samples.

    The trailing axis must have 3 or 4 elements and no other axis may have
    the same size, so e.g. (3, 512, 512, 3) stays ambiguous and is not RGB.
    """
    if len(shape) < 3:
        return False
    last = shape[-1]
    return last in RGB_CHANNEL_SIZES and last not in tuple(shape[:-1])


@dataclass(frozen=True)
class SpatialAxes:
    y: int
    x: int
    # Trailing colour axis, read in full; None unless RGB
    color: Optional[int] = None


def get_spatial_axes(rank: int, is_rgb: bool) -> SpatialAxes:
    """
    Locate the y, x (and colour) axes of an array of the given rank.

    Non-RGB arrays keep y, x as their last two axes. RGB/RGBA arrays keep
    the colour samples last, with y, x right before them.
    """
    if is_rgb:
        if rank < 3:
            raise ConfigurationError(
                f"RGB/A images need at least 3 dimensions (y, x, samples); got {rank}"
            )
        return SpatialAxes(y=rank - 3, x=rank - 2, color=rank - 1)
    if rank < 2:
        raise ConfigurationError(
            f"Images need at least 2 dimensions (y, x); got {rank}"
        )
    return SpatialAxes(y=rank - 2, x=rank - 1)
