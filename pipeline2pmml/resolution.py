"""Label and feature resolution."""

import logging
from typing import List, Optional, Sequence

from .config import Settings
from .encoder import PMMLEncoder
from .exceptions import (
    FeatureCountError,
    MissingInputArityError,
    TargetFieldCountError,
    UnsupportedMiningFunctionError,
)
from .pipeline import PipelineDescriptor, Step
from .schema import (
    CategoricalLabel,
    ContinuousLabel,
    DataType,
    Feature,
    Label,
    MiningFunction,
    OpType,
    WildcardFeature,
)
from .utils import format_categories, infer_data_type

logger = logging.getLogger(__name__)


def resolve_target_field(target_fields: Optional[Sequence[str]], settings: Settings) -> str:
    """
    Returns the single target field name.
    Falls back to the configured default name when no target fields are set.
    """
    if target_fields is not None:
        if len(target_fields) != 1:
            raise TargetFieldCountError(target_fields)
        return target_fields[0]

    target_field = settings.DEFAULT_TARGET_FIELD
    logger.warning(
        f"The 'target_fields' attribute is not set. Assuming {target_field} as the name of the target field"
    )
    return target_field


def resolve_label(descriptor: PipelineDescriptor, encoder: PMMLEncoder) -> Optional[Label]:
    """
    Declares the target data field and builds the label.
    Unsupervised estimators have no label.
    """
    estimator = descriptor.estimator
    if not estimator.supervised:
        return None

    target_field = resolve_target_field(descriptor.target_fields, encoder.settings)

    mining_function = estimator.mining_function
    if mining_function == MiningFunction.CLASSIFICATION:
        classes = estimator.classes or []

        data_type = infer_data_type(classes, DataType.STRING)
        categories = format_categories(classes)

        encoder.create_data_field(target_field, OpType.CATEGORICAL, data_type, categories)
        return CategoricalLabel(name=target_field, data_type=data_type, values=categories)

    if mining_function == MiningFunction.REGRESSION:
        encoder.create_data_field(target_field, OpType.CONTINUOUS, DataType.DOUBLE)
        return ContinuousLabel(name=target_field, data_type=DataType.DOUBLE)

    raise UnsupportedMiningFunctionError(estimator.describe(), mining_function)


def resolve_active_fields(descriptor: PipelineDescriptor, step: Step, settings: Settings) -> List[str]:
    """
    Returns the explicit active fields, or synthesizes x1..xN from the
    declared input arity of the given step.
    """
    if descriptor.active_fields is not None:
        return list(descriptor.active_fields)

    n_features = step.n_features
    if n_features < 0:
        raise MissingInputArityError(step.describe())

    active_fields = [f"{settings.ACTIVE_FIELD_PREFIX}{i + 1}" for i in range(n_features)]
    logger.warning(
        f"The 'active_fields' attribute is not set. Assuming {active_fields} as the names of active fields"
    )
    return active_fields


def init_features(
    descriptor: PipelineDescriptor,
    step: Step,
    op_type: OpType,
    data_type: DataType,
    encoder: PMMLEncoder,
) -> List[Feature]:
    """Declares one data field per active field and wraps each in a placeholder feature."""
    features: List[Feature] = []
    for active_field in resolve_active_fields(descriptor, step, encoder.settings):
        encoder.create_data_field(active_field, op_type, data_type)
        features.append(WildcardFeature(name=active_field, op_type=op_type, data_type=data_type))
    return features


def encode_features(descriptor: PipelineDescriptor, features: List[Feature], encoder: PMMLEncoder) -> List[Feature]:
    for transformer in descriptor.transformers:
        logger.debug(f"Encoding {len(features)} feature(s) through {transformer.describe()}")
        features = list(transformer.encode_features(features, encoder))
    return features


def resolve_features(descriptor: PipelineDescriptor, encoder: PMMLEncoder) -> List[Feature]:
    """
    Resolves the ordered features the estimator consumes.

    Logic:
    1. With transformers: placeholders typed after the head transformer
       (none when the head is an initializer), threaded through every transformer.
    2. Without transformers: placeholders typed after the estimator.
    3. The result must match the estimator's declared arity, when known.
    """
    estimator = descriptor.estimator

    if descriptor.transformers:
        head = descriptor.transformers[0]

        features: List[Feature] = []
        if not head.initializer:
            features = init_features(descriptor, head, head.op_type, head.data_type, encoder)

        features = encode_features(descriptor, features, encoder)
    else:
        features = init_features(descriptor, estimator, estimator.op_type, estimator.data_type, encoder)

    n_features = estimator.n_features
    if n_features > -1 and len(features) != n_features:
        raise FeatureCountError(estimator.describe(), n_features, len(features))

    return features
