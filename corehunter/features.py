"""
Phenotypic feature data: a table of items by typed features (traits).
"""

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd
from schema import And, Or, Schema, SchemaError
from schema import Optional as SchemaOptional

from .exceptions import ConfigurationError, DimensionMismatchError, InvalidDataError
from .headers import Header, IdentifiedData, create_headers
from .range import Range

# Set up module-level logger
logger = logging.getLogger(__name__)

SCALE_TYPES = ['nominal', 'ordinal', 'interval', 'ratio', 'none']
DATA_TYPES = [
    'boolean', 'short', 'integer', 'long', 'float', 'double',
    'big_integer', 'big_decimal', 'string', 'date', 'lsid',
]
NUMERIC_DATA_TYPES = ['short', 'integer', 'long', 'float', 'double', 'big_integer', 'big_decimal']


class Scale(NamedTuple):
    """Measurement scale of a feature, optionally with declared bounds."""

    scale_type: str
    data_type: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @property
    def range(self) -> Optional[Range]:
        if self.minimum is None or self.maximum is None:
            return None
        return Range(self.minimum, self.maximum)


class Feature(NamedTuple):
    name: str
    scale: Scale


# Define the feature configuration schema
FEATURE_SCHEMA = Schema({
    SchemaOptional('index', default=None): Or(None, str),
    'features': {
        str: {  # Column name (any string)
            'scale': And(str, lambda s: s in SCALE_TYPES),
            SchemaOptional('type', default='double'): And(str, lambda s: s in DATA_TYPES),
            SchemaOptional('min'): Or(int, float),
            SchemaOptional('max'): Or(int, float),
        }
    }
})


def validate_feature_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize a feature configuration."""
    validated_config = FEATURE_SCHEMA.validate(config)

    for feature_name, feature_config in validated_config['features'].items():
        if ('min' in feature_config) != ('max' in feature_config):
            raise SchemaError(f"Feature '{feature_name}' must declare both 'min' and 'max' or neither")

    return validated_config


def features_from_config(config: Dict[str, Any]) -> List[Feature]:
    """Create features, in configuration order, from a validated configuration."""
    return [
        Feature(name, Scale(
            scale_type=feature_config['scale'],
            data_type=feature_config['type'],
            minimum=feature_config.get('min'),
            maximum=feature_config.get('max'),
        ))
        for name, feature_config in config['features'].items()
    ]


def clean_value(value):
    """Map missing values (None, NaN, NaT, pd.NA) to None and numpy scalars to Python scalars."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, np.generic):
        return value.item()
    return value


class FeatureData(IdentifiedData):
    """
    Phenotypic values of n items for a list of features.

    Args:
        values: Items by features table (DataFrame or nested sequences);
            None/NaN marks a missing value
        features: One feature per column
        headers: Optional item headers
        names: Optional item names (used when headers are not given)

    Raises:
        InvalidDataError: On missing arguments
        DimensionMismatchError: If a row does not have one value per feature
    """

    def __init__(
        self,
        values,
        features: Sequence[Feature],
        headers: Optional[Sequence[Optional[Header]]] = None,
        names: Optional[Sequence[Optional[str]]] = None,
    ):
        if values is None or features is None:
            raise InvalidDataError("Features and data must be defined")

        if isinstance(values, pd.DataFrame):
            rows = [list(row) for row in values.itertuples(index=False)]
        else:
            rows = [list(row) for row in values]

        for item_id, row in enumerate(rows):
            if len(row) != len(features):
                raise DimensionMismatchError(
                    f"Number of values for item {item_id} ({len(row)}) "
                    f"does not match number of features ({len(features)})"
                )

        if headers is None and names is not None:
            headers = create_headers(names=names, size=len(rows))

        super().__init__(len(rows), headers)

        self._features = tuple(features)
        self._rows = tuple(tuple(clean_value(value) for value in row) for row in rows)

        logger.info(f"   Phenotypic data: {self.size} items, {len(self._features)} features")

    @classmethod
    def from_dataframe(cls, phenotype_data: pd.DataFrame, config: Dict[str, Any]) -> "FeatureData":
        """
        Build from a table and a feature configuration (see ``FEATURE_SCHEMA``).

        The configured index column, or else the table index, provides item names.
        """
        config = validate_feature_config(config)

        if config['index'] is not None:
            if config['index'] not in phenotype_data.columns:
                raise ConfigurationError(
                    f"Index column '{config['index']}' not found in phenotype table {list(phenotype_data.columns)}"
                )
            phenotype_data = phenotype_data.set_index(config['index'])

        features = features_from_config(config)
        for feature in features:
            if feature.name not in phenotype_data.columns:
                raise ConfigurationError(f"Feature '{feature.name}' specified in config but not found in phenotype table")

        values = phenotype_data[[feature.name for feature in features]]
        return cls(values, features, names=[str(label) for label in phenotype_data.index])

    @property
    def features(self) -> List[Feature]:
        return list(self._features)

    def get_number_of_features(self) -> int:
        return len(self._features)

    def get_value(self, item_id: int, feature_index: int):
        return self._rows[item_id][feature_index]

    def rows(self) -> List[List[Any]]:
        return [list(row) for row in self._rows]

    def column(self, feature_index: int) -> List[Any]:
        return [row[feature_index] for row in self._rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(list(self._rows), columns=[feature.name for feature in self._features])
