"""
pipeline2pmml

Compiles trained predictive pipelines into PMML documents, with optional
embedded model verification data.
"""

__version__ = "0.1.0"
__title__ = "pipeline2pmml"
__description__ = "Compile trained ML pipelines into self-verifying PMML documents"

from .compiler import PMMLCompiler, compile_pipeline
from .document import ModelVerification, PMMLDocument
from .encoder import PMMLEncoder, create_mining_schema
from .exceptions import ConfigurationError, PMMLCompilationError
from .pipeline import PipelineDescriptor
from .schema import (
    CategoricalLabel,
    ContinuousLabel,
    DataType,
    Feature,
    MiningFunction,
    OpType,
    Schema,
    WildcardFeature,
)
from .steps import BaseClassifier, BaseEstimator, BaseRegressor, BaseTransformer, PassthroughTransformer
from .tagname import create_tag_name
from .verification import Verification

__all__ = [
    "PMMLCompiler",
    "compile_pipeline",
    "PMMLDocument",
    "ModelVerification",
    "PMMLEncoder",
    "create_mining_schema",
    "ConfigurationError",
    "PMMLCompilationError",
    "PipelineDescriptor",
    "CategoricalLabel",
    "ContinuousLabel",
    "DataType",
    "Feature",
    "MiningFunction",
    "OpType",
    "Schema",
    "WildcardFeature",
    "BaseClassifier",
    "BaseEstimator",
    "BaseRegressor",
    "BaseTransformer",
    "PassthroughTransformer",
    "create_tag_name",
    "Verification",
]
