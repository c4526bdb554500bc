"""Pipeline to PMML compiler."""

import logging
from typing import List, Optional

from .config import Settings, get_settings
from .document import Extension, MiningBuildTask, PMMLDocument
from .encoder import PMMLEncoder, create_mining_schema
from .pipeline import PipelineDescriptor
from .resolution import resolve_features, resolve_label
from .schema import Schema
from .verification import build_model_verification

logger = logging.getLogger(__name__)


class PMMLCompiler:
    """
    Compiles a PipelineDescriptor into a PMMLDocument.

    Encapsulates:
    1. Label resolution (supervised estimators only)
    2. Feature resolution through the transformer chain
    3. Model encoding by the estimator
    4. Model verification (supervised estimators with verification data)
    5. Document assembly and build provenance

    The compiler holds no per-call state, so one instance can be shared.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def compile(self, descriptor: PipelineDescriptor) -> PMMLDocument:
        estimator = descriptor.estimator
        encoder = PMMLEncoder(self.settings)

        logger.info(
            f"Compiling pipeline of {len(descriptor.steps)} step(s) "
            f"ending in estimator {estimator.describe()}"
        )

        # 1. Label
        label = resolve_label(descriptor, encoder)

        # 2. Features
        features = resolve_features(descriptor, encoder)

        # 3. Model
        schema = Schema(label=label, features=features)
        model = estimator.encode_model(schema)

        if not model.mining_schema.mining_fields:
            model = model.model_copy(update={"mining_schema": create_mining_schema(schema, encoder)})

        # 4. Verification
        if estimator.supervised and descriptor.verification is not None:
            model_verification = build_model_verification(
                descriptor.verification,
                estimator,
                label,
                descriptor.active_fields,
                self._verified_target_fields(descriptor, label.name),
                self.settings,
            )
            model = model.model_copy(update={"model_verification": model_verification})
        elif descriptor.verification is not None:
            logger.warning(
                f"Ignoring verification data, the estimator {estimator.describe()} is not supervised"
            )

        # 5. Document
        pmml = encoder.encode_pmml(model)

        if descriptor.repr is not None:
            mining_build_task = MiningBuildTask(extensions=[Extension(content=[descriptor.repr])])
            pmml = pmml.model_copy(update={"mining_build_task": mining_build_task})

        logger.info(
            f"Compiled {model.tag} with {len(features)} feature(s) "
            f"and {len(pmml.data_dictionary.data_fields)} data field(s)"
        )
        return pmml

    @staticmethod
    def _verified_target_fields(descriptor: PipelineDescriptor, target_field: str) -> List[str]:
        if descriptor.target_fields is not None:
            return list(descriptor.target_fields)
        return [target_field]


def compile_pipeline(descriptor: PipelineDescriptor, settings: Optional[Settings] = None) -> PMMLDocument:
    """
    Compiles a pipeline descriptor into a PMML document.

    Args:
        descriptor: Transformers, estimator and optional field names,
                    provenance string and verification data.
        settings: Compiler settings. Defaults to get_settings().

    Returns:
        The complete document. Nothing is returned when compilation fails.
    """
    return PMMLCompiler(settings).compile(descriptor)
