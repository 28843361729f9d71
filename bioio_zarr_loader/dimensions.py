import numbers
from dataclasses import dataclass
from typing import Any, Iterator, List, Literal, Optional, Sequence, Tuple, Union

from .exceptions import ConfigurationError

DimensionKind = Literal["nominal", "ordinal", "quantitative"]
DIMENSION_KINDS: Tuple[str, ...] = ("nominal", "ordinal", "quantitative")

DimensionKey = Union[str, int]
DimensionValue = Union[str, int]


def is_index(value: Any) -> bool:
    """True for integral values that are not booleans (numpy ints included)."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class Unit:
    magnitude: float
    label: str


@dataclass(frozen=True)
class Dimension:
    """
    A named axis of an N-D image.

    Attributes
    ----------
    id : str
        Identifier used to address the axis in label-based selections.
    kind : DimensionKind
        "nominal" or "ordinal" for categorical axes (e.g. channels),
        "quantitative" for physical axes (e.g. z, y, x, time).
    categories : Optional[Tuple[str, ...]]
        Ordered category labels of a nominal/ordinal axis.
    unit : Optional[Unit]
        Physical unit of a quantitative axis.
    """

    id: str
    kind: DimensionKind
    categories: Optional[Tuple[str, ...]] = None
    unit: Optional[Unit] = None

    def __post_init__(self) -> None:
        if self.kind not in DIMENSION_KINDS:
            raise ConfigurationError(
                f"Dimension '{self.id}' has unknown kind '{self.kind}'; "
                f"expected one of {DIMENSION_KINDS}"
            )
        if self.categories is not None:
            object.__setattr__(self, "categories", tuple(self.categories))

    @property
    def is_categorical(self) -> bool:
        return self.kind in ("nominal", "ordinal")


@dataclass(frozen=True)
class DimensionSelection:
    """Selects `value` (a category label or an index) along `dimension`."""

    dimension: DimensionKey
    value: DimensionValue


class DimensionModel:
    """
    Holds the configured dimensions of an array and resolves label-based
    lookups into integer indices along the matching axis.

    Parameters
    ----------
    dimensions : Sequence[Dimension]
        One dimension per array axis, in axis order.
    rank : int
        Number of axes of the underlying array.

    Raises
    ------
    ConfigurationError
        If the number of dimensions does not match `rank`, or ids repeat.
    """

    def __init__(self, dimensions: Sequence[Dimension], rank: int) -> None:
        dims = list(dimensions)
        if len(dims) != rank:
            raise ConfigurationError(
                f"Dimensions length {len(dims)} does not match array rank {rank}: "
                f"{[d.id for d in dims]}"
            )
        ids = [d.id for d in dims]
        if len(set(ids)) != len(ids):
            raise ConfigurationError(f"Dimension ids must be unique: {ids}")
        self._dimensions = dims

    def __len__(self) -> int:
        return len(self._dimensions)

    def __iter__(self) -> Iterator[Dimension]:
        return iter(self._dimensions)

    def to_list(self) -> List[Dimension]:
        return list(self._dimensions)

    def index_of(self, dimension: DimensionKey) -> int:
        """
        Get the axis position of a dimension given by id or position.

        Raises
        ------
        ConfigurationError
            If no dimension matches.
        """
        if is_index(dimension):
            axis = int(dimension)
            if not 0 <= axis < len(self._dimensions):
                raise ConfigurationError(
                    f"Dimension index {axis} out of range for "
                    f"{len(self._dimensions)} dimensions"
                )
            return axis
        if isinstance(dimension, str):
            for axis, dim in enumerate(self._dimensions):
                if dim.id == dimension:
                    return axis
            raise ConfigurationError(
                f"Dimension '{dimension}' not present: "
                f"{[d.id for d in self._dimensions]}"
            )
        raise ConfigurationError(
            f"Dimension must be an id or an axis index, got {dimension!r}"
        )

    def resolve(
        self, dimension: DimensionKey, value: DimensionValue
    ) -> Tuple[int, int]:
        """
        Resolve a (dimension, value) pair into (axis, index).

        Categorical dimensions accept a category label or a category's
        position. Quantitative dimensions accept integer indices only.
        """
        axis = self.index_of(dimension)
        dim = self._dimensions[axis]

        if is_index(value):
            index = int(value)
            if dim.categories is not None and not 0 <= index < len(dim.categories):
                raise ConfigurationError(
                    f"Index {index} out of range for dimension '{dim.id}' "
                    f"with categories {list(dim.categories)}"
                )
            return axis, index

        if isinstance(value, str):
            if not dim.is_categorical:
                raise ConfigurationError(
                    f"Cannot select '{value}' on quantitative dimension '{dim.id}'; "
                    "use an integer index"
                )
            if dim.categories is None or value not in dim.categories:
                raise ConfigurationError(
                    f"Value '{value}' not found in dimension '{dim.id}': "
                    f"{list(dim.categories or ())}"
                )
            return axis, dim.categories.index(value)

        raise ConfigurationError(
            f"Selection value for dimension '{dim.id}' must be a label or an "
            f"integer index, got {value!r}"
        )
