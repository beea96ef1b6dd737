"""
Objectives that score a selection of items (a candidate core subset).

Every objective is a stateless callable object: ``evaluate(selected_ids, data)``
returns an ``Evaluation`` holding the score and whether lower is better.
``data`` is either a ``CoreHunterData`` or the data source the objective works
on directly (genotype data or a distance metric). The scoring itself is done
by the module-level functions, which work on plain numpy arrays.

Frequency-based objectives use the average allele frequencies of the
selection. Markers for which no selected item has data are left out of
per-marker means; if no marker is left, or a denominator is zero, a
``DomainError`` is raised. Terms with f = 0 contribute 0 to f ln f.
"""

from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .dataset import CoreHunterData
from .distances import DistanceMetric, distance_values
from .exceptions import ConfigurationError, DomainError
from .genotypes import GenotypeVariantData
from .headers import check_selection


class Evaluation(NamedTuple):
    value: float
    minimizing: bool


def defined_markers(averages: Sequence[np.ndarray]) -> List[np.ndarray]:
    """Drop markers whose average frequencies are undefined (no data in the selection)."""
    defined = [frequencies for frequencies in averages if not np.isnan(frequencies).any()]
    if not defined:
        raise DomainError("No marker has data for the selected items")
    return defined


def shannon_index(averages: Sequence[np.ndarray]) -> float:
    """Mean over markers of -sum(f * ln f)."""
    per_marker = []
    for frequencies in defined_markers(averages):
        positive = frequencies[frequencies > 0]
        per_marker.append(-np.sum(positive * np.log(positive)))
    return float(np.mean(per_marker))


def effective_number_of_alleles(averages: Sequence[np.ndarray]) -> float:
    """Mean over markers of 1 / sum(f^2)."""
    per_marker = []
    for frequencies in defined_markers(averages):
        homozygosity = np.sum(frequencies ** 2)
        if homozygosity == 0:
            raise DomainError("All allele frequencies of a marker are zero")
        per_marker.append(1.0 / homozygosity)
    return float(np.mean(per_marker))


def heterozygous_loci_fraction(fractions: Sequence[float]) -> float:
    """Mean over markers with data of the fraction of heterozygous calls."""
    fractions = np.asarray(fractions, dtype=float)
    defined = fractions[~np.isnan(fractions)]
    if len(defined) == 0:
        raise DomainError("No marker has data for the selected items")
    return float(defined.mean())


def marker_coverage(averages: Sequence[np.ndarray]) -> float:
    """Fraction of markers at which the selection has data and some allele with a positive frequency."""
    if len(averages) == 0:
        raise DomainError("Genotype data has no markers")
    covered = [not np.isnan(frequencies).any() and bool((frequencies > 0).any()) for frequencies in averages]
    return float(np.mean(covered))


def allele_coverage(selected_averages: Sequence[np.ndarray], full_averages: Sequence[np.ndarray]) -> float:
    """Fraction of the alleles present in the full collection that are present in the selection."""
    present_full = np.concatenate([np.nan_to_num(f) > 0 for f in full_averages]) if full_averages else np.array([])
    present_selected = np.concatenate([np.nan_to_num(f) > 0 for f in selected_averages]) if selected_averages else np.array([])
    total = int(np.sum(present_full))
    if total == 0:
        raise DomainError("No allele is present in the collection")
    return float(np.sum(present_selected & present_full)) / total


def proportion_non_informative(averages: Sequence[np.ndarray], threshold: float = 0.0) -> float:
    """Fraction of alleles whose average frequency is at most ``threshold``."""
    frequencies = np.concatenate(defined_markers(averages))
    return float(np.mean(frequencies <= threshold))


def average_entry_to_entry(distances: np.ndarray, ids: np.ndarray) -> float:
    """Mean distance over all pairs of selected items."""
    if len(ids) < 2:
        raise DomainError("At least two selected items are needed to compute pairwise distances")
    subset = distances[np.ix_(ids, ids)]
    return float(subset[np.triu_indices(len(ids), k=1)].mean())


def entry_to_nearest_entry(distances: np.ndarray, ids: np.ndarray) -> float:
    """Mean distance of each selected item to the nearest other selected item."""
    if len(ids) < 2:
        raise DomainError("At least two selected items are needed to compute nearest entries")
    subset = np.array(distances[np.ix_(ids, ids)], dtype=float)
    np.fill_diagonal(subset, np.inf)
    return float(subset.min(axis=1).mean())


def accession_to_nearest_entry(distances: np.ndarray, ids: np.ndarray) -> float:
    """Mean distance of every item in the collection to the nearest selected item."""
    return float(distances[:, ids].min(axis=1).mean())


def genotypes_of(data) -> GenotypeVariantData:
    if isinstance(data, CoreHunterData):
        if not data.has_genotypes():
            raise ConfigurationError(f"Dataset '{data.name}' has no genotypic data")
        return data.genotypic_data
    return data


class GenotypeObjective:
    """Objective computed from the average allele frequencies of the selection."""

    minimizing = False

    def evaluate(self, selected_ids: Iterable[int], data) -> Evaluation:
        averages = genotypes_of(data).get_marker_averages(selected_ids)
        return Evaluation(self.score(averages), self.minimizing)

    def score(self, averages: Sequence[np.ndarray]) -> float:
        raise NotImplementedError

    def is_minimizing(self) -> bool:
        return self.minimizing

    def __repr__(self):
        return f"{type(self).__name__}()"


class ShannonsDiversity(GenotypeObjective):
    def score(self, averages):
        return shannon_index(averages)


class NumberEffectiveAlleles(GenotypeObjective):
    def score(self, averages):
        return effective_number_of_alleles(averages)


class HeterozygousLociDiversity(GenotypeObjective):
    """
    Fraction of heterozygous calls in the selection, averaged over markers.

    Bi-allelic items are heterozygous at a marker when their score is 1;
    multi-allelic items when more than one allele has a positive frequency.
    Items without data for a marker are not counted for it.
    """

    def evaluate(self, selected_ids: Iterable[int], data) -> Evaluation:
        fractions = genotypes_of(data).get_heterozygous_fractions(selected_ids)
        return Evaluation(heterozygous_loci_fraction(fractions), self.minimizing)


class Coverage(GenotypeObjective):
    """Fraction of markers with an observed allele in the selection."""

    def score(self, averages):
        return marker_coverage(averages)


class AlleleCoverage(GenotypeObjective):
    """Proportion of the collection's alleles retained by the selection."""

    def evaluate(self, selected_ids: Iterable[int], data) -> Evaluation:
        genotypes = genotypes_of(data)
        selected_averages = genotypes.get_marker_averages(selected_ids)
        full_averages = genotypes.get_marker_averages(genotypes.get_ids())
        return Evaluation(allele_coverage(selected_averages, full_averages), self.minimizing)


class ProportionNonInformativeAlleles(GenotypeObjective):
    """
    Proportion of alleles whose average frequency in the selection is at most
    ``threshold``. The default threshold of 0 counts the alleles the selection
    lacks.
    """

    minimizing = True

    def __init__(self, threshold: float = 0.0):
        self.threshold = threshold

    def score(self, averages):
        return proportion_non_informative(averages, self.threshold)

    def __repr__(self):
        return f"{type(self).__name__}(threshold={self.threshold})"


class DistanceObjective:
    """
    Objective computed from pairwise distances between items.

    Args:
        metric: Distance metric to use. If omitted, the precomputed distance
            matrix of the dataset passed to ``evaluate`` is used.
    """

    minimizing = False

    def __init__(self, metric: Optional[DistanceMetric] = None):
        self.metric = metric

    def resolve_metric(self, data) -> DistanceMetric:
        if self.metric is not None:
            return self.metric
        if isinstance(data, CoreHunterData):
            if not data.has_distances():
                raise ConfigurationError(f"Dataset '{data.name}' has no precomputed distances")
            return data.distances
        return data

    def evaluate(self, selected_ids: Iterable[int], data) -> Evaluation:
        metric = self.resolve_metric(data)
        ids = check_selection(selected_ids, len(metric.get_ids()))
        return Evaluation(self.score(distance_values(metric), ids), self.minimizing)

    def score(self, distances: np.ndarray, ids: np.ndarray) -> float:
        raise NotImplementedError

    def is_minimizing(self) -> bool:
        return self.minimizing

    def __repr__(self):
        metric = "precomputed" if self.metric is None else type(self.metric).__name__
        return f"{type(self).__name__}(metric={metric})"


class AverageEntryToEntry(DistanceObjective):
    def score(self, distances, ids):
        return average_entry_to_entry(distances, ids)


class EntryToNearestEntry(DistanceObjective):
    def score(self, distances, ids):
        return entry_to_nearest_entry(distances, ids)


class AccessionToNearestEntry(DistanceObjective):
    minimizing = True

    def score(self, distances, ids):
        return accession_to_nearest_entry(distances, ids)


class WeightedIndex:
    """
    Weighted sum of several objectives, maximized. Minimizing objectives
    contribute with a negative sign.
    """

    minimizing = False

    def __init__(self, components: Sequence[Tuple[object, float]]):
        if not components:
            raise ConfigurationError("Weighted index needs at least one objective")
        self.components = tuple(components)

    def evaluate(self, selected_ids: Iterable[int], data) -> Evaluation:
        selected_ids = list(selected_ids)
        total = 0.0
        for objective, weight in self.components:
            evaluation = objective.evaluate(selected_ids, data)
            sign = -1.0 if evaluation.minimizing else 1.0
            total += sign * weight * evaluation.value
        return Evaluation(total, self.minimizing)

    def is_minimizing(self) -> bool:
        return self.minimizing
