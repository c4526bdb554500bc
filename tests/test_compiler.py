"""End-to-end tests for the pipeline compiler."""

import logging
import xml.etree.ElementTree as ET

import pytest

from pipeline2pmml import PMMLCompiler, PipelineDescriptor, Verification, compile_pipeline
from pipeline2pmml.config import Settings
from pipeline2pmml.document import MiningField, MiningSchema, Model, UsageType
from pipeline2pmml.exceptions import FeatureCountError, ShapeMismatchError
from pipeline2pmml.schema import MiningFunction, Schema
from pipeline2pmml.steps import BaseRegressor

NS = {"pmml": "http://www.dmg.org/PMML-4_3"}


class SchemaAwareRegressor(BaseRegressor):
    """Encoder that builds its own mining schema."""

    def encode_model(self, schema: Schema) -> Model:
        mining_schema = MiningSchema(
            mining_fields=[MiningField(name=schema.label.name, usage_type=UsageType.PREDICTED)]
        )
        return Model(
            tag="TreeModel",
            function_name=MiningFunction.REGRESSION,
            model_name="custom",
            mining_schema=mining_schema,
        )


@pytest.fixture
def iris_descriptor(make_classifier) -> PipelineDescriptor:
    verification = Verification(
        active_values=[[5.1, 0.2], [6.3, None]],
        target_values=["no", "yes"],
        probability_values=[[0.9, 0.1], [0.3, 0.7]],
    )
    return PipelineDescriptor.from_attributes(
        [("classifier", make_classifier(classes=["no", "yes"], n_features=2))],
        {
            "active_fields": ["sepal length", "petal width"],
            "target_fields": ["label"],
            "repr_": "PMMLPipeline(steps=[('classifier', LogisticRegression())])",
            "verification": verification,
        },
    )


def parse(pmml) -> ET.Element:
    return ET.fromstring(pmml.to_xml().encode("utf-8"))


def test_compile_classifier(iris_descriptor, settings):
    pmml = compile_pipeline(iris_descriptor, settings)

    assert pmml.version == "4.3"
    assert pmml.header.application.name == "pipeline2pmml"
    assert [data_field.name for data_field in pmml.data_dictionary.data_fields] == [
        "label",
        "sepal length",
        "petal width",
    ]
    assert pmml.data_fields["label"].values == ["no", "yes"]

    mining_fields = pmml.model.mining_schema.mining_fields
    assert [(field.name, field.usage_type) for field in mining_fields] == [
        ("label", UsageType.TARGET),
        ("sepal length", UsageType.ACTIVE),
        ("petal width", UsageType.ACTIVE),
    ]

    model_verification = pmml.model.model_verification
    assert model_verification.record_count == 2
    assert model_verification.columns == [
        "sepal_x0020_length",
        "petal_x0020_width",
        "probability_no",
        "probability_yes",
    ]

    assert pmml.mining_build_task.extensions[0].content == [
        "PMMLPipeline(steps=[('classifier', LogisticRegression())])"
    ]


def test_classifier_xml(iris_descriptor, settings):
    root = parse(compile_pipeline(iris_descriptor, settings))

    assert root.tag == "{http://www.dmg.org/PMML-4_3}PMML"
    assert root.get("version") == "4.3"
    assert root.find("pmml:DataDictionary", NS).get("numberOfFields") == "3"
    assert root.find("pmml:MiningBuildTask/pmml:Extension", NS).text.startswith("PMMLPipeline(")

    model = root.find("pmml:RegressionModel", NS)
    assert model.get("functionName") == "classification"

    target = model.find("pmml:MiningSchema/pmml:MiningField[@name='label']", NS)
    assert target.get("usageType") == "target"

    verification = model.find("pmml:ModelVerification", NS)
    assert verification.get("recordCount") == "2"
    assert verification.get("fieldCount") == "4"

    fields = verification.findall("pmml:VerificationFields/pmml:VerificationField", NS)
    assert fields[0].get("field") == "sepal length"
    assert fields[0].get("precision") is None
    assert fields[2].get("field") == "probability(no)"
    assert fields[2].get("precision") == "1e-13"

    first, second = verification.findall("pmml:InlineTable/pmml:row", NS)
    assert len(first) == 4
    # The missing petal width cell is left out of the second row
    assert [cell.tag.split("}")[1] for cell in second] == ["sepal_x0020_length", "probability_no", "probability_yes"]
    assert second.find("pmml:probability_yes", NS).text == "0.7"


def test_compilation_is_repeatable(iris_descriptor, settings):
    first = compile_pipeline(iris_descriptor, settings)
    second = compile_pipeline(iris_descriptor, settings)

    assert first is not second
    assert first.to_xml() == second.to_xml()
    assert first.data_dictionary == second.data_dictionary
    assert first.model.model_verification == second.model.model_verification


def test_compiler_instance_is_reusable(iris_descriptor, make_regressor, settings):
    compiler = PMMLCompiler(settings)

    compiler.compile(iris_descriptor)
    pmml = compiler.compile(PipelineDescriptor(estimator=make_regressor(), active_fields=["a"], target_fields=["t"]))

    assert [data_field.name for data_field in pmml.data_dictionary.data_fields] == ["t", "a"]


@pytest.mark.parametrize("n_active, n_declared", [(3, 3), (1, 1), (0, 0)])
def test_matching_arity_compiles(make_regressor, settings, n_active, n_declared):
    active_fields = [f"f{i}" for i in range(n_active)]
    descriptor = PipelineDescriptor(
        estimator=make_regressor(n_features=n_declared),
        active_fields=active_fields,
        target_fields=["t"],
    )

    pmml = compile_pipeline(descriptor, settings)

    assert [field.name for field in pmml.model.mining_schema.mining_fields][1:] == active_fields


@pytest.mark.parametrize("n_active, n_declared", [(3, 2), (1, 4)])
def test_mismatched_arity_fails(make_regressor, settings, n_active, n_declared):
    descriptor = PipelineDescriptor(
        estimator=make_regressor(n_features=n_declared),
        active_fields=[f"f{i}" for i in range(n_active)],
        target_fields=["t"],
    )

    with pytest.raises(FeatureCountError):
        compile_pipeline(descriptor, settings)


def test_verification_shape_error_aborts_compilation(make_regressor, settings):
    descriptor = PipelineDescriptor(
        estimator=make_regressor(n_features=2),
        active_fields=["a", "b"],
        target_fields=["t"],
        verification=Verification(active_values=[[1, 2], [3, 4], [5, 6]], target_values=[1.0, 2.0]),
    )

    with pytest.raises(ShapeMismatchError):
        compile_pipeline(descriptor, settings)


def test_default_target_field_is_verified(make_regressor, settings):
    descriptor = PipelineDescriptor(
        estimator=make_regressor(n_features=1),
        active_fields=["a"],
        verification=Verification(active_values=[[1.0]], target_values=[2.5]),
    )

    pmml = compile_pipeline(descriptor, settings)

    target_field = pmml.model.model_verification.verification_fields[-1]
    assert target_field.field == "y"
    assert target_field.precision == 1e-13


def test_configured_default_target_field(make_classifier):
    settings = Settings(_env_file=None, DEFAULT_TARGET_FIELD="outcome")
    descriptor = PipelineDescriptor(estimator=make_classifier(n_features=1), active_fields=["a"])

    pmml = compile_pipeline(descriptor, settings)

    assert "outcome" in pmml.data_fields


def test_unsupervised_pipeline_skips_verification(make_clusterer, settings, caplog):
    descriptor = PipelineDescriptor(
        estimator=make_clusterer(n_features=2),
        active_fields=["a", "b"],
        verification=Verification(active_values=[[1, 2]], target_values=[0]),
    )

    with caplog.at_level(logging.WARNING, logger="pipeline2pmml.compiler"):
        pmml = compile_pipeline(descriptor, settings)

    assert pmml.model.model_verification is None
    assert [data_field.name for data_field in pmml.data_dictionary.data_fields] == ["a", "b"]
    assert "Ignoring verification data" in caplog.text


def test_transformer_chain_builds_transformation_dictionary(make_regressor, doubling_transformer, settings):
    descriptor = PipelineDescriptor(
        transformers=[doubling_transformer],
        estimator=make_regressor(n_features=2),
        active_fields=["a", "b"],
        target_fields=["t"],
    )

    pmml = compile_pipeline(descriptor, settings)

    derived_fields = pmml.transformation_dictionary.derived_fields
    assert [derived_field.name for derived_field in derived_fields] == ["double(a)", "double(b)"]
    # Derived features never enter the mining schema
    assert [field.name for field in pmml.model.mining_schema.mining_fields] == ["t", "a", "b"]

    root = parse(pmml)
    apply = root.find("pmml:TransformationDictionary/pmml:DerivedField[@name='double(a)']/pmml:Apply", NS)
    assert apply.get("function") == "*"


def test_encoder_mining_schema_is_kept(settings):
    descriptor = PipelineDescriptor(
        estimator=SchemaAwareRegressor(n_features=1),
        active_fields=["a"],
        target_fields=["t"],
    )

    pmml = compile_pipeline(descriptor, settings)

    assert pmml.model.mining_schema.mining_fields == [MiningField(name="t", usage_type=UsageType.PREDICTED)]
    assert pmml.model.to_element().get("modelName") == "custom"


def test_no_provenance_without_repr(make_regressor, settings):
    descriptor = PipelineDescriptor(estimator=make_regressor(), active_fields=["a"], target_fields=["t"])

    pmml = compile_pipeline(descriptor, settings)

    assert pmml.mining_build_task is None
    assert parse(pmml).find("pmml:MiningBuildTask", NS) is None


def test_write(iris_descriptor, settings, tmp_path):
    path = tmp_path / "model.pmml"

    compile_pipeline(iris_descriptor, settings).write(path)

    text = path.read_text(encoding="utf-8")
    assert text.startswith('<?xml version="1.0" encoding="UTF-8" standalone="yes"?>')
    assert "<probability_yes>0.1</probability_yes>" in text


def test_compiler_settings_supply_default_tolerances(make_regressor):
    settings = Settings(_env_file=None, DEFAULT_PRECISION=1e-6, DEFAULT_ZERO_THRESHOLD=1e-8)
    descriptor = PipelineDescriptor(
        estimator=make_regressor(n_features=1),
        active_fields=["a"],
        target_fields=["t"],
        verification=Verification(active_values=[[1.0]], target_values=[2.5]),
    )

    pmml = compile_pipeline(descriptor, settings)

    target_field = pmml.model.model_verification.verification_fields[-1]
    assert target_field.precision == 1e-6
    assert target_field.zero_threshold == 1e-8
