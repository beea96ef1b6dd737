"""
Distances between items derived from their allele frequencies.

Both metrics are Euclidean distances in (transformed) allele frequency
space, normalized by the number of markers M so that they lie in [0, 1]:

    Modified Rogers:             sqrt( sum_m sum_a (p_xa - p_ya)^2 / 2M )
    Cavalli-Sforza and Edwards:  sqrt( sum_m sum_a (sqrt(p_xa) - sqrt(p_ya))^2 / 2M )

Markers that are missing for either item of a pair are left out, and M
counts the markers observed for both.
"""

import logging
from typing import FrozenSet

import numpy as np
from scipy.spatial.distance import pdist, squareform

from .exceptions import DomainError, InvalidSelectionError
from .genotypes import GenotypeVariantData

# Set up module-level logger
logger = logging.getLogger(__name__)


class GenotypeDistanceMetric:
    """
    Pairwise distances computed once from genotype data, served through the
    same ``get_distance`` / ``get_ids`` / ``get_data`` calls as a precomputed
    distance matrix.

    Raises:
        DomainError: If two items have no marker observed in common
    """

    name = "genotype distance"

    def __init__(self, genotypes: GenotypeVariantData):
        self._genotypes = genotypes
        n = genotypes.size
        squared = np.zeros((n, n))
        shared_markers = np.zeros((n, n))

        for marker_index in range(genotypes.get_number_of_markers()):
            frequencies = np.array([genotypes.get_allele_frequencies(i, marker_index) for i in range(n)], dtype=float)
            frequencies = frequencies.reshape(n, genotypes.get_number_of_alleles(marker_index))
            observed = ~np.isnan(frequencies).any(axis=1)
            both = np.outer(observed, observed).astype(float)
            if n > 1:
                block = self.transform(np.nan_to_num(frequencies))
                squared += squareform(pdist(block, 'sqeuclidean')) * both
            shared_markers += both

        np.fill_diagonal(shared_markers, 1.0)
        if np.any(shared_markers == 0):
            i, j = np.argwhere(shared_markers == 0)[0]
            raise DomainError(f"Items {i} and {j} have no observed marker in common")

        distances = np.sqrt(squared / (2.0 * shared_markers))
        np.fill_diagonal(distances, 0.0)
        distances.setflags(write=False)
        self._values = distances

        logger.info(f"   {self.name} distances for {n} items over {genotypes.get_number_of_markers()} markers")

    @staticmethod
    def transform(frequencies: np.ndarray) -> np.ndarray:
        return frequencies

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def size(self) -> int:
        return self._genotypes.size

    def get_distance(self, id_x: int, id_y: int) -> float:
        if not (0 <= id_x < self.size and 0 <= id_y < self.size):
            raise InvalidSelectionError(f"Unknown IDs {id_x}, {id_y} (valid IDs are 0..{self.size - 1})")
        return float(self._values[id_x, id_y])

    def get_ids(self) -> FrozenSet[int]:
        return self._genotypes.get_ids()

    def get_data(self) -> GenotypeVariantData:
        return self._genotypes


class ModifiedRogersDistance(GenotypeDistanceMetric):
    name = "Modified Rogers"


class CavalliSforzaEdwardsDistance(GenotypeDistanceMetric):
    name = "Cavalli-Sforza and Edwards"

    @staticmethod
    def transform(frequencies: np.ndarray) -> np.ndarray:
        return np.sqrt(frequencies)
