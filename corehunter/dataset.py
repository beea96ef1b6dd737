"""
The combined Core Hunter dataset: genotypes, phenotypes and/or a precomputed
distance matrix over the same items.
"""

import logging
from typing import Iterable, List, Optional

import numpy as np

from .distances import DistanceMatrixData
from .exceptions import ConfigurationError, InconsistentDataError
from .features import FeatureData
from .genotypes import GenotypeVariantData
from .headers import IdentifiedData, merge_headers

# Set up module-level logger
logger = logging.getLogger(__name__)

DEFAULT_NAME = "Core Hunter data"


def infer_size(sources: List[IdentifiedData]) -> int:
    """
    Common size of the given data sources.

    Raises:
        ConfigurationError: If no source is given
        InconsistentDataError: If the sources have different sizes
    """
    if not sources:
        raise ConfigurationError(
            "No data provided: at least one type of data (markers, phenotypes, distances) should be defined."
        )

    sizes = sorted({source.size for source in sources})
    if len(sizes) != 1:
        raise InconsistentDataError(f"Provided datasets have different sizes: {sizes}")

    return sizes[0]


class CoreHunterData(IdentifiedData):
    """
    Genotypic data, phenotypic traits and/or a precomputed distance matrix
    for the same n items, with integer IDs [0, n-1].

    Items must be ordered in the same way across all sources. Headers
    given by several sources must agree; the merged header of an item is the
    first one found (genotypes, then phenotypes, then distances), preferring
    a named header.

    Raises:
        ConfigurationError: If no data is provided
        InconsistentDataError: On different sizes or conflicting headers
    """

    def __init__(
        self,
        genotypic_data: Optional[GenotypeVariantData] = None,
        phenotypic_data: Optional[FeatureData] = None,
        distances: Optional[DistanceMatrixData] = None,
        name: str = DEFAULT_NAME,
    ):
        sources = [source for source in (genotypic_data, phenotypic_data, distances) if source is not None]
        size = infer_size(sources)
        headers = merge_headers(source.headers for source in sources)

        super().__init__(size, headers)

        self._name = name
        self._genotypic_data = genotypic_data
        self._phenotypic_data = phenotypic_data
        self._distances = distances

        kinds = [kind for kind, source in (("genotypes", genotypic_data), ("phenotypes", phenotypic_data),
                                           ("distances", distances)) if source is not None]
        logger.info(f"✅ {name}: {size} items ({', '.join(kinds)})")

    @property
    def name(self) -> str:
        return self._name

    @property
    def genotypic_data(self) -> Optional[GenotypeVariantData]:
        return self._genotypic_data

    @property
    def phenotypic_data(self) -> Optional[FeatureData]:
        return self._phenotypic_data

    @property
    def distances(self) -> Optional[DistanceMatrixData]:
        return self._distances

    def has_genotypes(self) -> bool:
        return self._genotypic_data is not None

    def has_phenotypes(self) -> bool:
        return self._phenotypic_data is not None

    def has_distances(self) -> bool:
        return self._distances is not None

    def validate_selection(self, selected_ids: Iterable[int]) -> np.ndarray:
        """Fail fast on empty selections and unknown IDs."""
        return self.check_selection(selected_ids)


def merge(
    genotypic_data: Optional[GenotypeVariantData] = None,
    phenotypic_data: Optional[FeatureData] = None,
    distances: Optional[DistanceMatrixData] = None,
) -> CoreHunterData:
    """Merge the given data sources into a single dataset."""
    return CoreHunterData(genotypic_data, phenotypic_data, distances)
