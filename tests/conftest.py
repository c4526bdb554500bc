"""Pytest fixtures for the compiler test suite."""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pipeline2pmml.config import Settings  # noqa: E402
from pipeline2pmml.document import Model  # noqa: E402
from pipeline2pmml.encoder import PMMLEncoder  # noqa: E402
from pipeline2pmml.schema import DataType, Feature, MiningFunction, OpType, Schema  # noqa: E402
from pipeline2pmml.steps import BaseClassifier, BaseEstimator, BaseRegressor, BaseTransformer  # noqa: E402


# ---------------------------------------------------------------------------
# Stub steps
# ---------------------------------------------------------------------------

class StubClassifier(BaseClassifier):
    def encode_model(self, schema: Schema) -> Model:
        return Model(tag="RegressionModel", function_name=MiningFunction.CLASSIFICATION)


class StubRegressor(BaseRegressor):
    def encode_model(self, schema: Schema) -> Model:
        return Model(tag="RegressionModel", function_name=MiningFunction.REGRESSION)


class StubClusterer(BaseEstimator):
    def __init__(self, n_features: int = -1):
        super().__init__(n_features=n_features, mining_function=MiningFunction.CLUSTERING, supervised=False)

    def encode_model(self, schema: Schema) -> Model:
        return Model(tag="ClusteringModel", function_name=MiningFunction.CLUSTERING)


class DoublingTransformer(BaseTransformer):
    """Declares one derived field per input feature: 2 * x."""

    def encode_features(self, features: List[Feature], encoder: PMMLEncoder) -> List[Feature]:
        result = []
        for feature in features:
            expression = ET.Element("Apply", {"function": "*"})
            ET.SubElement(expression, "FieldRef", {"field": feature.name})
            ET.SubElement(expression, "Constant").text = "2"

            derived_field = encoder.create_derived_field(
                f"double({feature.name})", OpType.CONTINUOUS, DataType.DOUBLE, expression
            )
            result.append(Feature(name=derived_field.name, op_type=OpType.CONTINUOUS, data_type=DataType.DOUBLE))
        return result


class DroppingTransformer(BaseTransformer):
    """Drops the last feature."""

    def encode_features(self, features: List[Feature], encoder: PMMLEncoder) -> List[Feature]:
        return list(features[:-1])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def encoder(settings: Settings) -> PMMLEncoder:
    return PMMLEncoder(settings)


@pytest.fixture
def make_classifier():
    def factory(classes=("no", "yes"), n_features: int = -1, has_probability_distribution: bool = True):
        return StubClassifier(
            classes=list(classes),
            has_probability_distribution=has_probability_distribution,
            n_features=n_features,
        )
    return factory


@pytest.fixture
def make_regressor():
    def factory(n_features: int = -1):
        return StubRegressor(n_features=n_features)
    return factory


@pytest.fixture
def make_clusterer():
    return StubClusterer


@pytest.fixture
def doubling_transformer() -> DoublingTransformer:
    return DoublingTransformer(name="doubler")


@pytest.fixture
def dropping_transformer() -> DroppingTransformer:
    return DroppingTransformer(name="dropper")
