"""
Gower's distance for mixed-type phenotypic data.

Every feature is classified once as binary, discrete or ranged. For a pair
of items each feature contributes a similarity s_k and a weight w_k:

    kind      s_k                      w_k
    binary    1 if both true           1 if either true
    discrete  1 if equal               1
    ranged    1 - |a - b| / range      1

A missing value on either side gives w_k = 0. The distance between two items
is ``1 - sum(s_k * w_k) / sum(w_k)``.

Nominal features are discrete whatever their data type, so nominal string
features are accepted. Only non-numeric data on an ordinal, interval or ratio
scale and the ``none`` scale raise ``InvalidConfigurationError``.
"""

import logging
from typing import Any, List, Sequence

import numpy as np
import pandas as pd

from .distances import DistanceMatrixData
from .exceptions import DomainError, InvalidConfigurationError, InvalidDataError
from .features import NUMERIC_DATA_TYPES, Feature, FeatureData

# Set up module-level logger
logger = logging.getLogger(__name__)

BINARY = 'binary'
DISCRETE = 'discrete'
RANGED = 'ranged'


def observed_range(values: Sequence[Any], feature: Feature) -> float:
    """Difference between the largest and smallest observed (non-missing) value."""
    numbers = numeric_column(values, feature)
    numbers = numbers[~np.isnan(numbers)]
    if len(numbers) == 0:
        return 0.0
    return float(numbers.max() - numbers.min())


def numeric_column(values: Sequence[Any], feature: Feature) -> np.ndarray:
    try:
        return np.array([np.nan if value is None else float(value) for value in values], dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidDataError(f"Non-numeric value for {feature.scale.scale_type} feature '{feature.name}': {e}") from e


def classify_feature(feature: Feature, values: Sequence[Any]):
    """
    Determine the kind of a feature and, for ranged features, its range.

    Returns:
        Tuple of (kind, range)

    Raises:
        InvalidConfigurationError: For unsupported scale and data type combinations
    """
    scale = feature.scale

    if scale.scale_type == 'nominal':
        if scale.data_type == 'boolean':
            return BINARY, 0.0
        return DISCRETE, 0.0

    if scale.scale_type in ('interval', 'ordinal', 'ratio'):
        if scale.data_type not in NUMERIC_DATA_TYPES:
            raise InvalidConfigurationError(
                f"Illegal scale type : {scale.scale_type} for data type {scale.data_type} (feature '{feature.name}')"
            )
        declared = scale.range
        feature_range = declared.length if declared is not None else observed_range(values, feature)
        if feature_range > 0:
            return RANGED, float(feature_range)
        # no spread, compare values as categories
        return DISCRETE, 0.0

    raise InvalidConfigurationError(f"Illegal scale type : {scale.scale_type} (feature '{feature.name}')")


class GowersDistanceMatrixGenerator:
    """
    Derive a [0, 1] distance matrix from phenotypic feature data.

    Args:
        feature_data: Items by features table with typed features

    Raises:
        InvalidConfigurationError: If a feature has an unsupported scale
    """

    def __init__(self, feature_data: FeatureData):
        if feature_data is None:
            raise InvalidDataError("Features and data must be defined")

        self._data = feature_data
        self._kinds = []
        self._ranges = []

        for index, feature in enumerate(feature_data.features):
            kind, feature_range = classify_feature(feature, feature_data.column(index))
            self._kinds.append(kind)
            self._ranges.append(feature_range)
            logger.debug(f"   Feature '{feature.name}' ({feature.scale.scale_type}/{feature.scale.data_type}): "
                         f"{kind}" + (f", range {feature_range:g}" if kind == RANGED else ""))

        counts = {kind: self._kinds.count(kind) for kind in (BINARY, DISCRETE, RANGED)}
        logger.info(f"   Gower features: {counts[BINARY]} binary, {counts[DISCRETE]} discrete, {counts[RANGED]} ranged")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]], features: Sequence[Feature]) -> "GowersDistanceMatrixGenerator":
        return cls(FeatureData(rows, features))

    @property
    def feature_kinds(self) -> List[str]:
        return list(self._kinds)

    @property
    def feature_ranges(self) -> List[float]:
        return list(self._ranges)

    def _feature_terms(self, index: int):
        """Similarity and weight matrices contributed by one feature."""
        feature = self._data.features[index]
        values = self._data.column(index)
        kind = self._kinds[index]
        present = np.array([value is not None for value in values])
        both_present = np.outer(present, present)

        if kind == BINARY:
            flags = np.array([bool(value) if value is not None else False for value in values])
            similarity = np.outer(flags, flags).astype(float)
            weight = (flags[:, None] | flags[None, :]).astype(float)
        elif kind == DISCRETE:
            codes, _ = pd.factorize(pd.Series(values, dtype=object))
            similarity = (codes[:, None] == codes[None, :]).astype(float)
            weight = np.ones_like(similarity)
        else:
            numbers = numeric_column(values, feature)
            difference = np.abs(numbers[:, None] - numbers[None, :])
            similarity = np.clip(1.0 - np.nan_to_num(difference) / self._ranges[index], 0.0, 1.0)
            weight = np.ones_like(similarity)

        weight = weight * both_present
        return similarity * weight, weight

    def generate_distance_matrix(self) -> DistanceMatrixData:
        """
        Compute the Gower distance between all pairs of items.

        Raises:
            DomainError: If a pair of distinct items has zero total weight
                (no feature in which both are observed and informative)
        """
        n = self._data.size
        weighted_similarity = np.zeros((n, n))
        weights = np.zeros((n, n))

        for index in range(self._data.get_number_of_features()):
            similarity, weight = self._feature_terms(index)
            weighted_similarity += similarity
            weights += weight

        np.fill_diagonal(weights, 1.0)
        np.fill_diagonal(weighted_similarity, 1.0)

        if np.any(weights == 0):
            i, j = np.argwhere(weights == 0)[0]
            raise DomainError(f"Items {i} and {j} share no feature with non-zero weight")

        distances = 1.0 - weighted_similarity / weights
        distances = np.clip(distances, 0.0, 1.0)

        logger.info(f"   Generated Gower distance matrix for {n} items")

        return DistanceMatrixData(distances, headers=self._data.headers)
