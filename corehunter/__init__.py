"""
Core Hunter: genetic diversity metrics for core subset selection

This package provides the data model and objective layer used when selecting
a core subset of a germplasm collection:
1. Genotype (bi- and multi-allelic), phenotype and distance matrix data
2. A combined dataset with consistency-checked item headers
3. Gower's distance for mixed-type phenotypic traits
4. Diversity and distance objectives evaluated on any selection of items

A search algorithm proposing candidate subsets is not part of this package;
it calls ``objective.evaluate(selected_ids, data)`` for every candidate.
"""

__version__ = "0.1.0"

from .config import create_index, create_objectives, load_config, validate_config
from .dataset import CoreHunterData, merge
from .distances import DistanceMatrixData, DistanceMetric
from .exceptions import (
    ConfigurationError,
    CoreHunterError,
    DimensionMismatchError,
    DomainError,
    InconsistentDataError,
    InvalidConfigurationError,
    InvalidDataError,
    InvalidSelectionError,
)
from .features import Feature, FeatureData, Scale, validate_feature_config
from .genetic_distances import CavalliSforzaEdwardsDistance, ModifiedRogersDistance
from .genotypes import GenotypeVariantData, SimpleBiAllelicGenotypeVariantData, SimpleMultiAllelicGenotypeVariantData
from .gower import GowersDistanceMatrixGenerator
from .headers import Header, merge_headers
from .objectives import (
    AccessionToNearestEntry,
    AlleleCoverage,
    AverageEntryToEntry,
    Coverage,
    EntryToNearestEntry,
    Evaluation,
    HeterozygousLociDiversity,
    NumberEffectiveAlleles,
    ProportionNonInformativeAlleles,
    ShannonsDiversity,
    WeightedIndex,
)
from .range import Range

__all__ = [
    "AccessionToNearestEntry",
    "AlleleCoverage",
    "AverageEntryToEntry",
    "CavalliSforzaEdwardsDistance",
    "ConfigurationError",
    "CoreHunterData",
    "CoreHunterError",
    "Coverage",
    "DimensionMismatchError",
    "DistanceMatrixData",
    "DistanceMetric",
    "DomainError",
    "EntryToNearestEntry",
    "Evaluation",
    "Feature",
    "FeatureData",
    "GenotypeVariantData",
    "GowersDistanceMatrixGenerator",
    "Header",
    "HeterozygousLociDiversity",
    "InconsistentDataError",
    "InvalidConfigurationError",
    "InvalidDataError",
    "InvalidSelectionError",
    "ModifiedRogersDistance",
    "NumberEffectiveAlleles",
    "ProportionNonInformativeAlleles",
    "Range",
    "Scale",
    "ShannonsDiversity",
    "SimpleBiAllelicGenotypeVariantData",
    "SimpleMultiAllelicGenotypeVariantData",
    "WeightedIndex",
    "create_index",
    "create_objectives",
    "load_config",
    "merge",
    "merge_headers",
    "validate_config",
    "validate_feature_config",
]
