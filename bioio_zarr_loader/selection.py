from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from .dimensions import DimensionModel, DimensionSelection, is_index
from .exceptions import ConfigurationError

ChannelSelection = Tuple[int, ...]
SelectionEntry = Union[int, DimensionSelection, Mapping]
SelectionInput = Union[Sequence[SelectionEntry], Sequence[Sequence[SelectionEntry]]]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, np.ndarray))


def _is_descriptor(value: Any) -> bool:
    if isinstance(value, DimensionSelection):
        return True
    return isinstance(value, Mapping) and {"dimension", "value"} <= set(value)


def _as_descriptor(value: Any) -> DimensionSelection:
    if isinstance(value, DimensionSelection):
        return value
    return DimensionSelection(dimension=value["dimension"], value=value["value"])


def _as_batch(selections: Any) -> List[List[Any]]:
    """Wrap a single selection into a one-element batch."""
    if not _is_sequence(selections):
        raise ConfigurationError(
            f"Channel selections must be a sequence, got {selections!r}"
        )
    entries = list(selections)
    if len(entries) > 0 and _is_sequence(entries[0]):
        return [list(sel) if _is_sequence(sel) else [sel] for sel in entries]
    return [entries]


def _resolve_labels(
    entries: List[Any], dimensions: DimensionModel, rank: int
) -> ChannelSelection:
    vector = [0] * rank
    seen: List[int] = []
    for descriptor in map(_as_descriptor, entries):
        axis, index = dimensions.resolve(descriptor.dimension, descriptor.value)
        if axis in seen:
            raise ConfigurationError(
                f"Dimension '{descriptor.dimension}' selected more than once"
            )
        seen.append(axis)
        vector[axis] = index
    return tuple(vector)


def normalize_channel_selection(
    selection: Sequence[Any],
    rank: int,
    dimensions: Optional[DimensionModel] = None,
) -> ChannelSelection:
    """
    Normalize a single channel selection to a full-length index vector.

    Parameters
    ----------
    selection : Sequence
        Either integer indices, one per axis, or DimensionSelection
        descriptors (dataclasses or {"dimension", "value"} mappings).
    rank : int
        Rank of the base array.
    dimensions : Optional[DimensionModel]
        Required for descriptor-based selections.

    Returns
    -------
    Tuple[int, ...]
        Index vector of length `rank`.
    """
    entries = list(selection)
    if all(is_index(e) for e in entries):
        if len(entries) != rank:
            raise ConfigurationError(
                f"Channel selection {entries} has length {len(entries)}; "
                f"expected {rank} to match the image dimensions"
            )
        return tuple(int(e) for e in entries)

    if all(_is_descriptor(e) for e in entries):
        if dimensions is None:
            raise ConfigurationError(
                f"Cannot set selection using {entries} for image with unlabeled "
                "dimensions. Consider specifying dimensions or indexing the "
                "image directly."
            )
        return _resolve_labels(entries, dimensions, rank)

    raise ConfigurationError(
        f"Channel selection {entries} must contain only integer indices or only "
        "dimension descriptors"
    )


def normalize_channel_selections(
    selections: SelectionInput,
    rank: int,
    dimensions: Optional[DimensionModel] = None,
    is_rgb: bool = False,
) -> List[ChannelSelection]:
    """
    Normalize one selection or a batch of selections.

    The whole batch is validated before anything is returned, so a caller
    committing the result never commits a partially valid batch.

    Spatial entries of numeric vectors are placeholders and are accepted
    with any value; the loader overwrites them for every request.
    """
    batch = [
        normalize_channel_selection(sel, rank, dimensions)
        for sel in _as_batch(selections)
    ]
    if is_rgb and len(batch) > 1:
        raise ConfigurationError(
            "Cannot specify multiple channel selections for RGB/A image; "
            f"got {len(batch)}"
        )
    return batch
