"""Per-compilation field registry and document wrapper."""

import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence

from .config import Settings, get_settings
from .document import (
    Application,
    DataDictionary,
    DataField,
    DerivedField,
    Header,
    MiningField,
    MiningSchema,
    Model,
    PMMLDocument,
    TransformationDictionary,
    UsageType,
)
from .exceptions import DuplicateFieldError
from .schema import DataType, OpType, Schema

logger = logging.getLogger(__name__)


class PMMLEncoder:
    """
    Collects the data fields and derived fields declared while a pipeline is compiled.

    A fresh encoder is created for every compilation, so nothing leaks between
    calls. Transformer encoders receive it to look up and declare fields.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._data_fields: Dict[str, DataField] = {}
        self._derived_fields: Dict[str, DerivedField] = {}

    def create_data_field(
        self,
        name: str,
        op_type: OpType,
        data_type: DataType,
        values: Optional[Sequence[str]] = None,
    ) -> DataField:
        if self.has_field(name):
            raise DuplicateFieldError(name)

        data_field = DataField(name=name, op_type=op_type, data_type=data_type, values=list(values or []))
        self._data_fields[name] = data_field
        logger.debug(f"Declared data field '{name}' ({op_type.value}, {data_type.value})")
        return data_field

    def create_derived_field(
        self,
        name: str,
        op_type: OpType,
        data_type: DataType,
        expression: ET.Element,
    ) -> DerivedField:
        if self.has_field(name):
            raise DuplicateFieldError(name)

        derived_field = DerivedField(name=name, op_type=op_type, data_type=data_type, expression=expression)
        self._derived_fields[name] = derived_field
        logger.debug(f"Declared derived field '{name}' ({op_type.value}, {data_type.value})")
        return derived_field

    def get_data_field(self, name: str) -> DataField:
        if name not in self._data_fields:
            raise KeyError(f"Data field '{name}' is not defined")
        return self._data_fields[name]

    def has_field(self, name: str) -> bool:
        return name in self._data_fields or name in self._derived_fields

    @property
    def data_fields(self) -> List[DataField]:
        return list(self._data_fields.values())

    @property
    def derived_fields(self) -> List[DerivedField]:
        return list(self._derived_fields.values())

    def encode_pmml(self, model: Model) -> PMMLDocument:
        """Wraps the model together with every declared field into a document."""
        transformation_dictionary = None
        if self._derived_fields:
            transformation_dictionary = TransformationDictionary(derived_fields=self.derived_fields)

        return PMMLDocument(
            version=self.settings.PMML_VERSION,
            namespace=self.settings.pmml_namespace,
            header=Header(
                application=Application(name=self.settings.APP_NAME, version=self.settings.APP_VERSION)
            ),
            data_dictionary=DataDictionary(data_fields=self.data_fields),
            transformation_dictionary=transformation_dictionary,
            model=model,
        )


def create_mining_schema(schema: Schema, encoder: Optional[PMMLEncoder] = None) -> MiningSchema:
    """
    Builds the mining schema for a model encoder.

    The target field (if any) comes first, followed by the active fields.
    When the encoder is given, the active fields are its declared data fields,
    which keeps derived features out of the mining schema. Otherwise the
    feature names are used as they are.
    """
    mining_fields: List[MiningField] = []
    seen = set()

    if schema.label is not None:
        mining_fields.append(MiningField(name=schema.label.name, usage_type=UsageType.TARGET))
        seen.add(schema.label.name)

    if encoder is not None:
        names = [data_field.name for data_field in encoder.data_fields]
    else:
        names = schema.feature_names

    for name in names:
        if name in seen:
            continue
        mining_fields.append(MiningField(name=name))
        seen.add(name)

    return MiningSchema(mining_fields=mining_fields)
