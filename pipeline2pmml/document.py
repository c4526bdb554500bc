"""Schemas for the compiled PMML document."""

from __future__ import annotations

import copy
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .schema import DataType, MiningFunction, OpType
from .utils import format_value

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'


class UsageType(str, Enum):
    ACTIVE = "active"
    TARGET = "target"
    PREDICTED = "predicted"
    SUPPLEMENTARY = "supplementary"


class DataField(BaseModel):
    """Declared input or output field of the data dictionary."""

    name: str
    op_type: OpType
    data_type: DataType
    values: List[str] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element(
            "DataField",
            {"name": self.name, "optype": self.op_type.value, "dataType": self.data_type.value},
        )
        for value in self.values:
            ET.SubElement(element, "Value", {"value": value})
        return element


class DataDictionary(BaseModel):
    data_fields: List[DataField] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("DataDictionary", {"numberOfFields": str(len(self.data_fields))})
        element.extend(data_field.to_element() for data_field in self.data_fields)
        return element


class DerivedField(BaseModel):
    """Field computed from other fields by a transformer encoder."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    op_type: OpType
    data_type: DataType
    expression: ET.Element

    def to_element(self) -> ET.Element:
        element = ET.Element(
            "DerivedField",
            {"name": self.name, "optype": self.op_type.value, "dataType": self.data_type.value},
        )
        element.append(copy.deepcopy(self.expression))
        return element


class TransformationDictionary(BaseModel):
    derived_fields: List[DerivedField] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("TransformationDictionary")
        element.extend(derived_field.to_element() for derived_field in self.derived_fields)
        return element


class MiningField(BaseModel):
    name: str
    usage_type: UsageType = UsageType.ACTIVE

    def to_element(self) -> ET.Element:
        attributes = {"name": self.name}
        # 'active' is the PMML default and is left implicit
        if self.usage_type != UsageType.ACTIVE:
            attributes["usageType"] = self.usage_type.value
        return ET.Element("MiningField", attributes)


class MiningSchema(BaseModel):
    mining_fields: List[MiningField] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("MiningSchema")
        element.extend(mining_field.to_element() for mining_field in self.mining_fields)
        return element


class VerificationField(BaseModel):
    """Column metadata of the embedded verification table."""

    field: str
    column: str
    precision: Optional[float] = None
    zero_threshold: Optional[float] = None

    def to_element(self) -> ET.Element:
        attributes = {"field": self.field, "column": self.column}
        if self.precision is not None:
            attributes["precision"] = format_value(self.precision)
        if self.zero_threshold is not None:
            attributes["zeroThreshold"] = format_value(self.zero_threshold)
        return ET.Element("VerificationField", attributes)


class Cell(BaseModel):
    tag: str
    value: str


class Row(BaseModel):
    """Sparse table row; missing cells are simply absent."""

    cells: List[Cell] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("row")
        for cell in self.cells:
            ET.SubElement(element, cell.tag).text = cell.value
        return element


class InlineTable(BaseModel):
    rows: List[Row] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("InlineTable")
        element.extend(row.to_element() for row in self.rows)
        return element


class ModelVerification(BaseModel):
    """Golden records a scoring engine replays to validate the model."""

    record_count: int
    verification_fields: List[VerificationField] = Field(default_factory=list)
    inline_table: InlineTable = Field(default_factory=InlineTable)

    @property
    def field_count(self) -> int:
        return len(self.verification_fields)

    @property
    def columns(self) -> List[str]:
        return [verification_field.column for verification_field in self.verification_fields]

    def to_element(self) -> ET.Element:
        element = ET.Element(
            "ModelVerification",
            {"recordCount": str(self.record_count), "fieldCount": str(self.field_count)},
        )
        fields = ET.SubElement(element, "VerificationFields")
        fields.extend(verification_field.to_element() for verification_field in self.verification_fields)
        element.append(self.inline_table.to_element())
        return element


class Model(BaseModel):
    """
    Model element produced by an estimator's encoder.

    `tag` is the PMML model element name (e.g. 'RegressionModel') and
    `content` holds the encoder-built elements between the mining schema
    and the model verification.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, protected_namespaces=())

    tag: str
    function_name: MiningFunction
    model_name: Optional[str] = None
    attributes: Dict[str, str] = Field(default_factory=dict)
    mining_schema: MiningSchema = Field(default_factory=MiningSchema)
    content: List[ET.Element] = Field(default_factory=list)
    model_verification: Optional[ModelVerification] = None

    def to_element(self) -> ET.Element:
        attributes: Dict[str, str] = {}
        if self.model_name is not None:
            attributes["modelName"] = self.model_name
        attributes["functionName"] = self.function_name.value
        attributes.update(self.attributes)

        element = ET.Element(self.tag, attributes)
        element.append(self.mining_schema.to_element())
        element.extend(copy.deepcopy(item) for item in self.content)
        if self.model_verification is not None:
            element.append(self.model_verification.to_element())
        return element


class Extension(BaseModel):
    name: Optional[str] = None
    value: Optional[str] = None
    content: List[str] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        attributes = {}
        if self.name is not None:
            attributes["name"] = self.name
        if self.value is not None:
            attributes["value"] = self.value
        element = ET.Element("Extension", attributes)
        element.text = "".join(self.content) or None
        return element


class MiningBuildTask(BaseModel):
    """Build provenance. Informational only."""

    extensions: List[Extension] = Field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("MiningBuildTask")
        element.extend(extension.to_element() for extension in self.extensions)
        return element


class Application(BaseModel):
    name: str
    version: Optional[str] = None


class Header(BaseModel):
    application: Application
    description: Optional[str] = None

    def to_element(self) -> ET.Element:
        element = ET.Element("Header")
        if self.description is not None:
            element.set("description", self.description)
        application = {"name": self.application.name}
        if self.application.version is not None:
            application["version"] = self.application.version
        ET.SubElement(element, "Application", application)
        return element


class PMMLDocument(BaseModel):
    """Compiled model interchange document."""

    version: str
    namespace: str
    header: Header
    data_dictionary: DataDictionary
    transformation_dictionary: Optional[TransformationDictionary] = None
    model: Model
    mining_build_task: Optional[MiningBuildTask] = None

    @property
    def data_fields(self) -> Dict[str, DataField]:
        return {data_field.name: data_field for data_field in self.data_dictionary.data_fields}

    def to_element(self) -> ET.Element:
        root = ET.Element("PMML", {"xmlns": self.namespace, "version": self.version})
        root.append(self.header.to_element())
        if self.mining_build_task is not None:
            root.append(self.mining_build_task.to_element())
        root.append(self.data_dictionary.to_element())
        if self.transformation_dictionary is not None and self.transformation_dictionary.derived_fields:
            root.append(self.transformation_dictionary.to_element())
        root.append(self.model.to_element())
        return root

    def to_xml(self, pretty: bool = True) -> str:
        root = self.to_element()
        if pretty:
            ET.indent(root)
        return XML_DECLARATION + ET.tostring(root, encoding="unicode")

    def write(self, path: Union[str, Path], pretty: bool = True) -> None:
        Path(path).write_text(self.to_xml(pretty=pretty), encoding="utf-8")
