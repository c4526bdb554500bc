"""
scikit-learn adapters.

Wrap fitted scikit-learn objects as pipeline steps. Capabilities (input arity,
problem type, classes, probability support) are read once, when the step is
created. Encoding stays with the caller-supplied encoder callables.
"""

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence

from sklearn.base import BaseEstimator as SklearnBaseEstimator
from sklearn.base import ClusterMixin, is_classifier, is_regressor
from sklearn.pipeline import Pipeline
from sklearn.utils.validation import check_is_fitted

from .document import Model
from .encoder import PMMLEncoder
from .exceptions import ConfigurationError, EmptyPipelineError
from .pipeline import PipelineDescriptor
from .schema import DataType, Feature, MiningFunction, OpType, Schema
from .steps import BaseEstimator, BaseTransformer, PassthroughTransformer
from .verification import Verification

logger = logging.getLogger(__name__)

FeatureEncoder = Callable[[List[Feature], PMMLEncoder], List[Feature]]
ModelEncoder = Callable[[Schema], Model]


def _is_passthrough(obj: Any) -> bool:
    return obj is None or (isinstance(obj, str) and obj == "passthrough")


class SklearnTransformer(BaseTransformer):
    def __init__(
        self,
        transformer: SklearnBaseEstimator,
        feature_encoder: FeatureEncoder,
        name: Optional[str] = None,
        op_type: OpType = OpType.CONTINUOUS,
        data_type: DataType = DataType.DOUBLE,
    ):
        check_is_fitted(transformer)
        super().__init__(
            name=name or type(transformer).__name__,
            n_features=int(getattr(transformer, "n_features_in_", -1)),
            op_type=op_type,
            data_type=data_type,
        )
        self.transformer = transformer
        self.feature_encoder = feature_encoder

    def encode_features(self, features: List[Feature], encoder: PMMLEncoder) -> List[Feature]:
        return self.feature_encoder(features, encoder)


class SklearnEstimator(BaseEstimator):
    def __init__(
        self,
        estimator: SklearnBaseEstimator,
        model_encoder: ModelEncoder,
        name: Optional[str] = None,
        op_type: OpType = OpType.CONTINUOUS,
        data_type: DataType = DataType.DOUBLE,
    ):
        check_is_fitted(estimator)

        if is_classifier(estimator):
            mining_function: Optional[MiningFunction] = MiningFunction.CLASSIFICATION
        elif is_regressor(estimator):
            mining_function = MiningFunction.REGRESSION
        elif isinstance(estimator, ClusterMixin):
            mining_function = MiningFunction.CLUSTERING
        else:
            mining_function = None

        super().__init__(
            name=name or type(estimator).__name__,
            n_features=int(getattr(estimator, "n_features_in_", -1)),
            op_type=op_type,
            data_type=data_type,
            mining_function=mining_function,
            supervised=mining_function in (MiningFunction.CLASSIFICATION, MiningFunction.REGRESSION),
        )
        self.estimator = estimator
        self.model_encoder = model_encoder

        self._classes: Optional[List[Any]] = None
        self._has_probability_distribution = False
        if mining_function == MiningFunction.CLASSIFICATION:
            self._classes = list(estimator.classes_)
            # hasattr() is False when predict_proba is disabled (e.g. SVC(probability=False))
            self._has_probability_distribution = hasattr(estimator, "predict_proba")

    @property
    def classes(self) -> Optional[List[Any]]:
        return None if self._classes is None else list(self._classes)

    @property
    def has_probability_distribution(self) -> bool:
        return self._has_probability_distribution

    def encode_model(self, schema: Schema) -> Model:
        return self.model_encoder(schema)


def descriptor_from_sklearn(
    pipeline: SklearnBaseEstimator,
    model_encoder: ModelEncoder,
    feature_encoders: Optional[Mapping[str, FeatureEncoder]] = None,
    active_fields: Optional[Sequence[str]] = None,
    target_fields: Optional[Sequence[str]] = None,
    repr_: Optional[str] = None,
    verification: Optional[Verification] = None,
) -> PipelineDescriptor:
    """
    Builds a PipelineDescriptor from a fitted scikit-learn pipeline or estimator.

    Args:
        pipeline: Fitted sklearn.pipeline.Pipeline, or a single fitted estimator.
        model_encoder: Encodes the final estimator for a resolved schema.
        feature_encoders: Feature encoder per transformer step name.
                          'passthrough' steps need none.
        active_fields: Input field names. Defaults to the column names seen
                       during fit, when the pipeline was fitted on a DataFrame.
        repr_: Provenance string. Defaults to repr(pipeline).
    """
    feature_encoders = feature_encoders or {}

    if isinstance(pipeline, Pipeline):
        steps = list(pipeline.steps)
    else:
        steps = [(type(pipeline).__name__, pipeline)]

    if not steps:
        raise EmptyPipelineError()

    estimator_name, estimator = steps[-1]
    if _is_passthrough(estimator):
        raise ConfigurationError(
            f"The final step ({estimator_name}) must be an estimator, got 'passthrough'",
            {"step": estimator_name},
        )

    transformers: List[BaseTransformer] = []
    for name, transformer in steps[:-1]:
        if _is_passthrough(transformer):
            transformers.append(PassthroughTransformer(name=name))
            continue

        if name not in feature_encoders:
            raise ConfigurationError(
                f"No feature encoder is registered for the transformer step '{name}'",
                {"step": name, "registered": sorted(feature_encoders)},
            )
        transformers.append(SklearnTransformer(transformer, feature_encoders[name], name=name))

    if active_fields is None:
        first = next((obj for _, obj in steps if not _is_passthrough(obj)), None)
        feature_names = getattr(first, "feature_names_in_", None)
        if feature_names is not None:
            active_fields = [str(name) for name in feature_names]
            logger.debug(f"Using the fitted column names {active_fields} as active fields")

    return PipelineDescriptor(
        transformers=transformers,
        estimator=SklearnEstimator(estimator, model_encoder, name=estimator_name),
        active_fields=active_fields,
        target_fields=target_fields,
        repr=repr_ if repr_ is not None else repr(pipeline),
        verification=verification,
    )
