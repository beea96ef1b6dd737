"""
Precomputed distance matrices and the distance metric capability shared with
genotype-derived distances.
"""

import logging
from typing import Any, FrozenSet, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
import pandas as pd

from .exceptions import DimensionMismatchError, InvalidDataError, InvalidSelectionError
from .headers import Header, IdentifiedData, create_headers

# Set up module-level logger
logger = logging.getLogger(__name__)

SYMMETRY_TOLERANCE = 1e-9


@runtime_checkable
class DistanceMetric(Protocol):
    """Anything that serves pairwise distances over a fixed set of integer IDs."""

    def get_distance(self, id_x: int, id_y: int) -> float:
        ...

    def get_ids(self) -> FrozenSet[int]:
        ...

    def get_data(self) -> Any:
        ...


def distance_values(metric: DistanceMetric) -> np.ndarray:
    """Full distance matrix of a metric, as a (read-only) numpy array."""
    values = getattr(metric, "values", None)
    if values is not None:
        return values
    ids = sorted(metric.get_ids())
    return np.array([[metric.get_distance(i, j) for j in ids] for i in ids], dtype=float)


def validate_distance_matrix(distances: np.ndarray) -> None:
    """
    Validate a square, non-negative, symmetric matrix with a zero diagonal.

    Raises:
        InvalidDataError: If any of these conditions does not hold
    """
    if distances.ndim != 2 or distances.shape[0] != distances.shape[1]:
        raise InvalidDataError(f"Distance matrix must be square, got shape {distances.shape}")

    if not np.all(np.isfinite(distances)):
        raise InvalidDataError("Distance matrix contains missing or infinite values")

    if np.any(distances < 0):
        i, j = np.argwhere(distances < 0)[0]
        raise InvalidDataError(f"Negative distance {distances[i, j]} between items {i} and {j}")

    asymmetric = np.abs(distances - distances.T) > SYMMETRY_TOLERANCE
    if np.any(asymmetric):
        i, j = np.argwhere(asymmetric)[0]
        raise InvalidDataError(
            f"Distance matrix is not symmetric: d[{i}][{j}]={distances[i, j]} but d[{j}][{i}]={distances[j, i]}"
        )

    diagonal = np.abs(np.diag(distances)) > SYMMETRY_TOLERANCE
    if np.any(diagonal):
        i = int(np.argmax(diagonal))
        raise InvalidDataError(f"Distance of item {i} to itself is {distances[i, i]}, expected 0")


class DistanceMatrixData(IdentifiedData):
    """
    Symmetric matrix of pairwise distances between items with IDs [0, n-1].

    Args:
        distances: Square n x n matrix (any 2-D array-like)
        headers: Optional item headers
        names: Optional item names (used when headers are not given)
        identifiers: Optional unique identifiers (used when headers are not given)

    Raises:
        InvalidDataError: If the matrix is not a valid distance matrix
        DimensionMismatchError: If header, name or identifier counts differ
            from the matrix dimension
    """

    def __init__(
        self,
        distances,
        headers: Optional[Sequence[Optional[Header]]] = None,
        names: Optional[Sequence[Optional[str]]] = None,
        identifiers: Optional[Sequence[Optional[str]]] = None,
    ):
        if distances is None:
            raise InvalidDataError("Distances not defined")

        try:
            values = np.array(distances, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidDataError(f"Distance matrix is not numeric: {e}") from e

        validate_distance_matrix(values)
        size = values.shape[0]

        if headers is None and (names is not None or identifiers is not None):
            try:
                headers = create_headers(names=names, identifiers=identifiers, size=size)
            except DimensionMismatchError as e:
                raise DimensionMismatchError(f"Distance matrix of dimension {size}: {e}") from e

        super().__init__(size, headers)

        # exact symmetry, stored read-only
        values = (values + values.T) / 2.0
        np.fill_diagonal(values, 0.0)
        values.setflags(write=False)
        self._values = values

        logger.debug(f"   Distance matrix with {size} items")

    @classmethod
    def from_dataframe(cls, distance_data: pd.DataFrame) -> "DistanceMatrixData":
        """
        Build from a labelled square matrix with item names as index and columns.

        Raises:
            DimensionMismatchError: If row and column labels differ
        """
        rows = [str(label) for label in distance_data.index]
        columns = [str(label) for label in distance_data.columns]

        if rows != columns:
            raise DimensionMismatchError(
                f"Row labels do not match column labels ({len(rows)} rows, {len(columns)} columns)"
            )

        return cls(distance_data.to_numpy(dtype=float), names=rows)

    @property
    def values(self) -> np.ndarray:
        return self._values

    def get_distance(self, id_x: int, id_y: int) -> float:
        if not (0 <= id_x < self.size and 0 <= id_y < self.size):
            raise InvalidSelectionError(f"Unknown IDs {id_x}, {id_y} (valid IDs are 0..{self.size - 1})")
        return float(self._values[id_x, id_y])

    def get_data(self) -> "DistanceMatrixData":
        return self

    def to_dataframe(self) -> pd.DataFrame:
        labels = [
            header.name if header is not None and header.name is not None
            else (header.unique_identifier if header is not None else str(i))
            for i, header in enumerate(self.headers)
        ]
        return pd.DataFrame(self._values, index=labels, columns=labels)
