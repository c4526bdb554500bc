"""Field types, features and labels shared by the compiler and model encoders."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class OpType(str, Enum):
    CATEGORICAL = "categorical"
    ORDINAL = "ordinal"
    CONTINUOUS = "continuous"


class DataType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATE = "date"
    DATE_TIME = "dateTime"

    @property
    def is_floating(self) -> bool:
        return self in (DataType.FLOAT, DataType.DOUBLE)


class MiningFunction(str, Enum):
    CLASSIFICATION = "classification"
    REGRESSION = "regression"
    CLUSTERING = "clustering"
    ASSOCIATION_RULES = "associationRules"
    SEQUENCES = "sequences"
    TIME_SERIES = "timeSeries"
    MIXED = "mixed"


@dataclass(frozen=True)
class Feature:
    """A named, typed input of the encoded model."""

    name: str
    op_type: OpType
    data_type: DataType


@dataclass(frozen=True)
class WildcardFeature(Feature):
    """Pass-through feature that refers directly to a data dictionary field."""


@dataclass(frozen=True)
class CategoricalLabel:
    name: str
    data_type: DataType
    values: List[str] = field(default_factory=list)

    @property
    def op_type(self) -> OpType:
        return OpType.CATEGORICAL

    @property
    def size(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class ContinuousLabel:
    name: str
    data_type: DataType = DataType.DOUBLE

    @property
    def op_type(self) -> OpType:
        return OpType.CONTINUOUS


Label = Union[CategoricalLabel, ContinuousLabel]


@dataclass(frozen=True)
class Schema:
    """Label and ordered features handed to a model encoder."""

    label: Optional[Label]
    features: List[Feature]

    @property
    def feature_names(self) -> List[str]:
        return [feature.name for feature in self.features]
