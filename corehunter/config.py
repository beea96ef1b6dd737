"""
Objective configuration: validation of the JSON configuration and creation of
the configured objectives for a dataset.

Example configuration::

    {
        "objectives": [
            {"type": "shannon"},
            {"type": "average_entry_to_entry", "measure": "modified_rogers", "weight": 2.0},
            {"type": "proportion_non_informative", "threshold": 0.05}
        ]
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from schema import And, Or, Schema, SchemaError
from schema import Optional as SchemaOptional

from .dataset import CoreHunterData
from .exceptions import ConfigurationError
from .genetic_distances import CavalliSforzaEdwardsDistance, ModifiedRogersDistance
from .gower import GowersDistanceMatrixGenerator
from .objectives import (
    AccessionToNearestEntry,
    AlleleCoverage,
    AverageEntryToEntry,
    Coverage,
    EntryToNearestEntry,
    HeterozygousLociDiversity,
    NumberEffectiveAlleles,
    ProportionNonInformativeAlleles,
    ShannonsDiversity,
    WeightedIndex,
)

# Set up module-level logger
logger = logging.getLogger(__name__)

GENOTYPE_OBJECTIVES = {
    'shannon': ShannonsDiversity,
    'effective_alleles': NumberEffectiveAlleles,
    'heterozygous_loci': HeterozygousLociDiversity,
    'coverage': Coverage,
    'allele_coverage': AlleleCoverage,
    'proportion_non_informative': ProportionNonInformativeAlleles,
}

DISTANCE_OBJECTIVES = {
    'average_entry_to_entry': AverageEntryToEntry,
    'entry_to_nearest_entry': EntryToNearestEntry,
    'accession_to_nearest_entry': AccessionToNearestEntry,
}

MEASURES = ['precomputed', 'modified_rogers', 'cavalli_sforza_edwards', 'gower']

# Define the configuration schema
CONFIG_SCHEMA = Schema({
    'objectives': And([
        {
            'type': And(str, lambda s: s in list(GENOTYPE_OBJECTIVES) + list(DISTANCE_OBJECTIVES)),
            SchemaOptional('weight', default=1.0): And(Or(int, float), lambda n: n >= 0),
            SchemaOptional('measure'): And(str, lambda s: s in MEASURES),
            SchemaOptional('threshold'): And(Or(int, float), lambda n: 0 <= n <= 1),
        }
    ], lambda objectives: len(objectives) > 0),
})


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize an objective configuration."""
    validated_config = CONFIG_SCHEMA.validate(config)

    for objective_config in validated_config['objectives']:
        objective_type = objective_config['type']

        if objective_type in DISTANCE_OBJECTIVES:
            objective_config.setdefault('measure', 'precomputed')
        elif 'measure' in objective_config:
            raise SchemaError(f"Objective '{objective_type}' does not use a distance measure")

        if 'threshold' in objective_config and objective_type != 'proportion_non_informative':
            raise SchemaError(f"Objective '{objective_type}' does not use a threshold")

    return validated_config


def load_config(config_file: Union[str, Path]) -> Dict[str, Any]:
    """Read and validate a JSON objective configuration."""
    with open(config_file) as f:
        config = json.load(f)
    return validate_config(config)


def create_measure(measure: str, data: CoreHunterData):
    """
    Distance metric for a configured measure.

    Raises:
        ConfigurationError: If the dataset lacks the data the measure needs
    """
    if measure == 'precomputed':
        if not data.has_distances():
            raise ConfigurationError("Measure 'precomputed' requires a precomputed distance matrix")
        return data.distances
    if measure in ('modified_rogers', 'cavalli_sforza_edwards'):
        if not data.has_genotypes():
            raise ConfigurationError(f"Measure '{measure}' requires genotypic data")
        metric_class = ModifiedRogersDistance if measure == 'modified_rogers' else CavalliSforzaEdwardsDistance
        return metric_class(data.genotypic_data)
    if measure == 'gower':
        if not data.has_phenotypes():
            raise ConfigurationError("Measure 'gower' requires phenotypic data")
        return GowersDistanceMatrixGenerator(data.phenotypic_data).generate_distance_matrix()
    raise ConfigurationError(f"Unknown distance measure: {measure}")


def create_objectives(config: Dict[str, Any], data: CoreHunterData) -> List[Tuple[Any, float]]:
    """
    Create the configured objectives for a dataset.

    Distance metrics are computed once and shared between objectives that
    use the same measure.

    Returns:
        List of (objective, weight) pairs

    Raises:
        SchemaError: If the configuration is invalid
        ConfigurationError: If the dataset lacks data an objective needs
    """
    config = validate_config(config)
    measures = {}
    objectives = []

    for objective_config in config['objectives']:
        objective_type = objective_config['type']
        weight = float(objective_config['weight'])

        if objective_type in GENOTYPE_OBJECTIVES:
            if not data.has_genotypes():
                raise ConfigurationError(f"Objective '{objective_type}' requires genotypic data")
            if objective_type == 'proportion_non_informative':
                objective = ProportionNonInformativeAlleles(objective_config.get('threshold', 0.0))
            else:
                objective = GENOTYPE_OBJECTIVES[objective_type]()
        else:
            measure = objective_config['measure']
            if measure not in measures:
                measures[measure] = create_measure(measure, data)
            objective = DISTANCE_OBJECTIVES[objective_type](measures[measure])

        logger.info(f"   Objective {objective!r} with weight {weight}")
        objectives.append((objective, weight))

    return objectives


def create_index(config: Dict[str, Any], data: CoreHunterData) -> WeightedIndex:
    """Weighted index over all configured objectives."""
    return WeightedIndex(create_objectives(config, data))
