"""
Genotype variant data: per-item, per-marker allele frequencies.

Two concrete forms are provided. Multi-allelic data stores an allele
frequency vector per item and marker, with an independent number of alleles
per marker. Bi-allelic data stores diploid allele scores (0, 1 or 2 copies
of the reference allele) and derives frequencies from them.

Missing data is encoded as NaN. An item with any missing allele frequency
for a marker is treated as missing for that whole marker, and averages over
a selection only include the items that have data for the marker.
"""

import logging
from typing import FrozenSet, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
import pandas as pd

from .exceptions import DimensionMismatchError, InvalidDataError, InvalidSelectionError
from .headers import IdentifiedData, create_headers

# Set up module-level logger
logger = logging.getLogger(__name__)

ALLELE_SCORES = (0, 1, 2)
FREQUENCY_SUM_TOLERANCE = 1e-6


@runtime_checkable
class GenotypeVariantData(Protocol):
    """Capabilities that frequency-based objectives rely on."""

    size: int

    def get_ids(self) -> FrozenSet[int]:
        ...

    def get_number_of_markers(self) -> int:
        ...

    def get_number_of_alleles(self, marker_index: int) -> int:
        ...

    def get_allele_frequencies(self, item_id: int, marker_index: int) -> np.ndarray:
        ...

    def get_average_allele_frequencies(self, selected_ids: Iterable[int], marker_index: int) -> np.ndarray:
        ...

    def get_average_allele_frequency(self, selected_ids: Iterable[int], marker_index: int, allele_index: int) -> float:
        ...

    def get_marker_averages(self, selected_ids: Iterable[int]) -> List[np.ndarray]:
        ...

    def get_heterozygous_fractions(self, selected_ids: Iterable[int]) -> np.ndarray:
        ...


def is_missing(value) -> bool:
    """True for None, pd.NA and NaN of any float type."""
    if value is None or value is pd.NA:
        return True
    return np.isscalar(value) and bool(pd.isna(value))


def heterozygous_fraction(frequencies: np.ndarray) -> float:
    """
    Fraction of the rows with data in which more than one allele has a
    positive frequency. NaN when no row has data.
    """
    observed = frequencies[~np.isnan(frequencies).any(axis=1)]
    if len(observed) == 0:
        return np.nan
    return float(np.mean((observed > 0).sum(axis=1) > 1))


def average_frequencies(frequencies: np.ndarray) -> np.ndarray:
    """
    Column means over the rows that have data.

    Returns a vector of NaN when no row has data.
    """
    observed = ~np.isnan(frequencies).any(axis=1)
    if not observed.any():
        return np.full(frequencies.shape[1], np.nan)
    return frequencies[observed].mean(axis=0)


class AlleleFrequencyData(IdentifiedData):
    """
    Frequency queries shared by the bi- and multi-allelic forms.

    ``frequencies`` holds one (items x alleles) array per marker.
    """

    def __init__(self, headers, marker_names: Sequence[str], allele_names: Sequence[Sequence[str]],
                 frequencies: List[np.ndarray]):
        size = frequencies[0].shape[0] if frequencies else len(headers)
        super().__init__(size, headers)

        for marker_frequencies in frequencies:
            marker_frequencies.setflags(write=False)

        self._marker_names = tuple(str(name) for name in marker_names)
        self._allele_names = tuple(tuple(str(name) for name in names) for names in allele_names)
        self._frequencies = tuple(frequencies)

    def get_number_of_markers(self) -> int:
        return len(self._marker_names)

    def get_number_of_alleles(self, marker_index: int) -> int:
        return len(self._allele_names[marker_index])

    def get_total_number_of_alleles(self) -> int:
        return sum(len(names) for names in self._allele_names)

    def get_marker_name(self, marker_index: int) -> str:
        return self._marker_names[marker_index]

    def get_allele_name(self, marker_index: int, allele_index: int) -> str:
        return self._allele_names[marker_index][allele_index]

    @property
    def marker_names(self) -> List[str]:
        return list(self._marker_names)

    def get_allele_frequencies(self, item_id: int, marker_index: int) -> np.ndarray:
        """Allele frequencies of one item at one marker (NaN when missing)."""
        if not 0 <= item_id < self.size:
            raise InvalidSelectionError(f"Unknown ID {item_id} (valid IDs are 0..{self.size - 1})")
        return self._frequencies[marker_index][item_id]

    def has_data(self, item_id: int, marker_index: int) -> bool:
        return not np.isnan(self.get_allele_frequencies(item_id, marker_index)).any()

    def get_average_allele_frequencies(self, selected_ids: Iterable[int], marker_index: int) -> np.ndarray:
        """
        Average allele frequencies at a marker over the selected items that have data.

        Raises:
            DomainError: If the selection is empty
            InvalidSelectionError: If the selection contains unknown IDs
        """
        ids = self.check_selection(selected_ids)
        return average_frequencies(self._frequencies[marker_index][ids])

    def get_average_allele_frequency(self, selected_ids: Iterable[int], marker_index: int, allele_index: int) -> float:
        return float(self.get_average_allele_frequencies(selected_ids, marker_index)[allele_index])

    def get_marker_averages(self, selected_ids: Iterable[int]) -> List[np.ndarray]:
        """Average allele frequencies over the selection for every marker."""
        ids = self.check_selection(selected_ids)
        return [average_frequencies(marker_frequencies[ids]) for marker_frequencies in self._frequencies]

    def get_heterozygous_fractions(self, selected_ids: Iterable[int]) -> np.ndarray:
        """
        Per marker, the fraction of heterozygous calls among the selected items
        that have data (NaN for markers without data in the selection).

        An item is heterozygous at a marker when more than one of its alleles
        has a positive frequency.
        """
        ids = self.check_selection(selected_ids)
        return np.array([heterozygous_fraction(marker_frequencies[ids]) for marker_frequencies in self._frequencies])


def validate_frequencies(frequencies: np.ndarray, marker_name: str) -> None:
    observed = frequencies[~np.isnan(frequencies).any(axis=1)]
    if np.any((observed < 0) | (observed > 1)):
        raise InvalidDataError(f"Allele frequencies for marker {marker_name} must lie in [0, 1]")
    sums = observed.sum(axis=1)
    if np.any(sums > 1 + FREQUENCY_SUM_TOLERANCE):
        raise InvalidDataError(
            f"Allele frequencies for marker {marker_name} sum to {sums.max():.6f}, expected at most 1"
        )


class SimpleMultiAllelicGenotypeVariantData(AlleleFrequencyData):
    """
    Multi-allelic genotype data given as allele frequencies.

    Args:
        item_names: One name per item (entries may be None)
        marker_names: One name per marker
        allele_names: Allele names per marker; their lengths fix the number
            of alleles of each marker. If omitted, allele counts are taken from
            the data and names are generated as "<marker>-<i>".
        frequencies: ``frequencies[item][marker][allele]`` in [0, 1]. A marker
            entry of None, or any None/NaN frequency, marks the item as
            missing for that marker.
        identifiers: Optional unique identifiers, one per item

    Raises:
        InvalidDataError: On missing arguments or invalid frequencies
        DimensionMismatchError: If item, marker or allele counts disagree
    """

    def __init__(
        self,
        item_names: Optional[Sequence[Optional[str]]],
        marker_names: Sequence[str],
        allele_names: Optional[Sequence[Sequence[str]]],
        frequencies: Sequence[Sequence[Optional[Sequence[Optional[float]]]]],
        identifiers: Optional[Sequence[Optional[str]]] = None,
    ):
        if marker_names is None:
            raise InvalidDataError("Marker names not defined")
        if frequencies is None:
            raise InvalidDataError("Allele frequencies not defined")

        n_items = len(frequencies)
        n_markers = len(marker_names)
        headers = create_headers(names=item_names, identifiers=identifiers, size=n_items)

        for item_id, item_frequencies in enumerate(frequencies):
            if len(item_frequencies) != n_markers:
                raise DimensionMismatchError(
                    f"Number of markers for item {item_id} ({len(item_frequencies)}) "
                    f"does not match number of marker names ({n_markers})"
                )

        if allele_names is None:
            allele_names = [
                [f"{marker_name}-{i + 1}" for i in range(self._infer_number_of_alleles(frequencies, m, marker_name))]
                for m, marker_name in enumerate(marker_names)
            ]
        elif len(allele_names) != n_markers:
            raise DimensionMismatchError(
                f"Number of allele name lists ({len(allele_names)}) does not match number of markers ({n_markers})"
            )

        marker_arrays = []
        for m, marker_name in enumerate(marker_names):
            n_alleles = len(allele_names[m])
            if n_alleles == 0:
                raise InvalidDataError(f"Marker {marker_name} has no alleles")
            values = np.full((n_items, n_alleles), np.nan)
            for item_id, item_frequencies in enumerate(frequencies):
                marker_frequencies = item_frequencies[m]
                if marker_frequencies is None:
                    continue
                if len(marker_frequencies) != n_alleles:
                    raise DimensionMismatchError(
                        f"Number of allele frequencies for item {item_id} at marker {marker_name} "
                        f"({len(marker_frequencies)}) does not match number of alleles ({n_alleles})"
                    )
                row = np.array([np.nan if is_missing(f) else f for f in marker_frequencies], dtype=float)
                if not np.isnan(row).any():
                    values[item_id] = row
            validate_frequencies(values, marker_name)
            marker_arrays.append(values)

        super().__init__(headers, marker_names, allele_names, marker_arrays)

        logger.info(
            f"   Multi-allelic genotype data: {n_items} items, {n_markers} markers, "
            f"{self.get_total_number_of_alleles()} alleles"
        )

    @staticmethod
    def _infer_number_of_alleles(frequencies, marker_index: int, marker_name: str) -> int:
        for item_frequencies in frequencies:
            if item_frequencies[marker_index] is not None:
                return len(item_frequencies[marker_index])
        raise InvalidDataError(f"Cannot infer number of alleles for marker {marker_name} without data")

    @classmethod
    def from_dataframe(cls, frequency_data: pd.DataFrame) -> "SimpleMultiAllelicGenotypeVariantData":
        """
        Build from a table with item names as index and a (marker, allele)
        column MultiIndex, markers in order of first appearance.
        """
        if not isinstance(frequency_data.columns, pd.MultiIndex) or frequency_data.columns.nlevels != 2:
            raise DimensionMismatchError("Frequency table needs (marker, allele) column labels")

        marker_names = list(dict.fromkeys(frequency_data.columns.get_level_values(0)))
        allele_names = [list(frequency_data[marker].columns) for marker in marker_names]
        frequencies = [
            [[None if pd.isna(v) else float(v) for v in row[marker]] for marker in marker_names]
            for _, row in frequency_data.iterrows()
        ]

        return cls([str(label) for label in frequency_data.index], marker_names, allele_names, frequencies)


class SimpleBiAllelicGenotypeVariantData(AlleleFrequencyData):
    """
    Bi-allelic genotype data given as diploid allele scores.

    A score counts the copies of the reference allele (0, 1 or 2), so the
    reference allele has frequency ``score / 2`` and the alternative allele
    ``1 - score / 2``. None or NaN marks a missing score.

    Args:
        item_names: One name per item (entries may be None)
        marker_names: One name per marker
        allele_scores: ``allele_scores[item][marker]``
        identifiers: Optional unique identifiers, one per item

    Raises:
        InvalidDataError: On missing arguments or scores outside {0, 1, 2}
        DimensionMismatchError: If item or marker counts disagree
    """

    def __init__(
        self,
        item_names: Optional[Sequence[Optional[str]]],
        marker_names: Sequence[str],
        allele_scores: Sequence[Sequence[Optional[int]]],
        identifiers: Optional[Sequence[Optional[str]]] = None,
    ):
        if marker_names is None:
            raise InvalidDataError("Marker names not defined")
        if allele_scores is None:
            raise InvalidDataError("Allele scores not defined")

        n_items = len(allele_scores)
        n_markers = len(marker_names)

        if item_names is not None and len(item_names) != n_items:
            raise DimensionMismatchError(
                f"Number of allele score rows ({n_items}) does not match number of names ({len(item_names)})"
            )
        headers = create_headers(names=item_names, identifiers=identifiers, size=n_items)

        scores = np.full((n_items, n_markers), np.nan)
        for item_id, row in enumerate(allele_scores):
            if len(row) != n_markers:
                raise DimensionMismatchError(
                    f"Number of markers for item {item_id} ({len(row)}) "
                    f"does not match number of marker names ({n_markers})"
                )
            for m, score in enumerate(row):
                if is_missing(score):
                    continue
                if score not in ALLELE_SCORES:
                    raise InvalidDataError(
                        f"Invalid allele score {score!r} for item {item_id} at marker {marker_names[m]}, "
                        f"expected one of {ALLELE_SCORES}"
                    )
                scores[item_id, m] = score

        scores.setflags(write=False)
        self._scores = scores

        reference = scores / 2.0
        frequencies = [np.column_stack([reference[:, m], 1.0 - reference[:, m]]) for m in range(n_markers)]
        allele_names = [[f"{name}-ref", f"{name}-alt"] for name in marker_names]

        super().__init__(headers, marker_names, allele_names, frequencies)

        missing = int(np.isnan(scores).sum())
        logger.info(f"   Bi-allelic genotype data: {n_items} items, {n_markers} markers, {missing} missing scores")

    @classmethod
    def from_dataframe(cls, score_data: pd.DataFrame) -> "SimpleBiAllelicGenotypeVariantData":
        """Build from a table with item names as index and markers as columns."""
        allele_scores = [
            [None if pd.isna(v) else int(v) for v in row]
            for row in score_data.itertuples(index=False)
        ]
        return cls(
            [str(label) for label in score_data.index],
            [str(column) for column in score_data.columns],
            allele_scores,
        )

    def get_heterozygous_fractions(self, selected_ids: Iterable[int]) -> np.ndarray:
        """Per marker, the fraction of selected items with a score of 1 among those with a score."""
        ids = self.check_selection(selected_ids)
        scores = self._scores[ids]
        calls = (~np.isnan(scores)).sum(axis=0)
        heterozygous = (scores == 1).sum(axis=0)
        return np.where(calls > 0, heterozygous / np.maximum(calls, 1), np.nan)

    def get_allele_score(self, item_id: int, marker_index: int) -> Optional[int]:
        """Number of copies of the reference allele, or None when missing."""
        if not 0 <= item_id < self.size:
            raise InvalidSelectionError(f"Unknown ID {item_id} (valid IDs are 0..{self.size - 1})")
        score = self._scores[item_id, marker_index]
        return None if np.isnan(score) else int(score)
