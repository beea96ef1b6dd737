"""
Item headers and the reconciliation of headers supplied by several data sources.
"""

import logging
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import DimensionMismatchError, DomainError, InconsistentDataError, InvalidSelectionError

# Set up module-level logger
logger = logging.getLogger(__name__)


class Header:
    """
    Identifies an item by a unique identifier and an optional name.

    When only a name is given the name doubles as unique identifier. Two
    headers are equal when their unique identifiers are equal, regardless
    of their names.
    """

    __slots__ = ("_unique_identifier", "_name")

    def __init__(self, unique_identifier: Optional[str] = None, name: Optional[str] = None):
        if unique_identifier is None:
            unique_identifier = name
        if unique_identifier is None:
            raise ValueError("Header requires a unique identifier or a name")
        self._unique_identifier = str(unique_identifier)
        self._name = None if name is None else str(name)

    @property
    def unique_identifier(self) -> str:
        return self._unique_identifier

    @property
    def name(self) -> Optional[str]:
        return self._name

    def __eq__(self, other):
        if not isinstance(other, Header):
            return NotImplemented
        return self._unique_identifier == other._unique_identifier

    def __hash__(self):
        return hash(self._unique_identifier)

    def __repr__(self):
        return f"Header(unique_identifier={self._unique_identifier!r}, name={self._name!r})"


def create_headers(
    names: Optional[Sequence[Optional[str]]] = None,
    identifiers: Optional[Sequence[Optional[str]]] = None,
    size: Optional[int] = None,
) -> List[Optional[Header]]:
    """
    Build one header per item from item names and/or unique identifiers.

    Args:
        names: Item names (entries may be None)
        identifiers: Unique identifiers (entries may be None)
        size: Expected number of items, checked against names and identifiers

    Returns:
        List of headers, None where neither a name nor an identifier is known

    Raises:
        DimensionMismatchError: If the given sequences have different lengths
    """
    lengths = {}
    if names is not None:
        lengths["names"] = len(names)
    if identifiers is not None:
        lengths["identifiers"] = len(identifiers)
    if size is not None:
        lengths["items"] = size

    if len(set(lengths.values())) > 1:
        details = ", ".join(f"{label}={length}" for label, length in lengths.items())
        raise DimensionMismatchError(f"Number of headers does not match number of items ({details})")

    n = next(iter(lengths.values()), 0)
    headers = []
    for i in range(n):
        name = names[i] if names is not None else None
        identifier = identifiers[i] if identifiers is not None else None
        if name is None and identifier is None:
            headers.append(None)
        else:
            headers.append(Header(identifier, name))
    return headers


def synthetic_headers(size: int) -> List[Header]:
    """Headers with identifiers "0" .. "n-1" for data without any header."""
    return [Header(str(i)) for i in range(size)]


def merge_header(index: int, first: Optional[Header], second: Optional[Header]) -> Optional[Header]:
    """
    Combine the headers two data sources report for the same item.

    Raises:
        InconsistentDataError: If the identifiers differ, or the names differ
            while the identifiers agree
    """
    if first is None:
        return second
    if second is None:
        return first
    if first != second:
        raise InconsistentDataError(
            f"Headers do not match for item {index}. "
            f"Got different ids {first.unique_identifier} and {second.unique_identifier}."
        )
    if first.name is not None and second.name is not None and first.name != second.name:
        raise InconsistentDataError(
            f"Headers do not match for item {index}. "
            f"Got same id {first.unique_identifier} but different names {first.name} and {second.name}."
        )
    # keep the one that carries a name
    return first if first.name is not None else second


def merge_headers(header_lists: Iterable[Sequence[Optional[Header]]]) -> List[Header]:
    """
    Fold the header lists of several data sources into a single list.

    All lists must have the same length. If no source provides any header,
    synthetic headers are generated.

    Raises:
        InconsistentDataError: On different lengths or conflicting headers
    """
    merged = None
    for headers in header_lists:
        headers = list(headers)
        if merged is None:
            merged = headers
            continue
        if len(headers) != len(merged):
            raise InconsistentDataError(
                f"Cannot merge headers of {len(merged)} and {len(headers)} items"
            )
        merged = [merge_header(i, h1, h2) for i, (h1, h2) in enumerate(zip(merged, headers))]

    if merged is None:
        raise InconsistentDataError("No headers to merge")

    if all(header is None for header in merged):
        logger.debug(f"   No headers provided, generating {len(merged)} synthetic headers")
        return synthetic_headers(len(merged))

    return merged


class IdentifiedData:
    """
    Shared plumbing for data sources whose items carry integer IDs [0, n-1]
    and optional headers.
    """

    def __init__(self, size: int, headers: Optional[Sequence[Optional[Header]]] = None):
        if headers is None:
            headers = [None] * size
        elif len(headers) != size:
            raise DimensionMismatchError(
                f"Number of headers ({len(headers)}) does not match number of items ({size})"
            )
        self._size = size
        self._headers = tuple(headers)
        self._ids = frozenset(range(size))

    @property
    def size(self) -> int:
        return self._size

    @property
    def headers(self) -> Tuple[Optional[Header], ...]:
        return self._headers

    def get_ids(self) -> FrozenSet[int]:
        return self._ids

    def get_header(self, item_id: int) -> Optional[Header]:
        return self._headers[item_id]

    def get_name(self, item_id: int) -> Optional[str]:
        header = self._headers[item_id]
        return None if header is None else header.name

    def check_selection(self, selected_ids: Iterable[int]) -> np.ndarray:
        """
        Validate a selection and return its IDs as a sorted integer array.

        Raises:
            DomainError: If the selection is empty
            InvalidSelectionError: If an ID is not part of this data source
        """
        return check_selection(selected_ids, self._size)


def check_selection(selected_ids: Iterable[int], size: int) -> np.ndarray:
    """Validate selected IDs against the ID range [0, size-1]."""
    unique_ids = set(selected_ids)
    invalid = [i for i in unique_ids if isinstance(i, (bool, np.bool_)) or not isinstance(i, (int, np.integer))]
    if invalid:
        raise InvalidSelectionError(f"IDs must be integers, got: {sorted(map(repr, invalid))[:10]}")
    ids = np.fromiter(sorted(unique_ids), dtype=np.int64)
    if len(ids) == 0:
        raise DomainError("Selection is empty")
    if ids[0] < 0 or ids[-1] >= size:
        unknown = [int(i) for i in ids if i < 0 or i >= size]
        raise InvalidSelectionError(f"Unknown IDs in selection: {unknown[:10]} (valid IDs are 0..{size - 1})")
    return ids
