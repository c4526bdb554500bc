"""Verification data and the ModelVerification builder."""

import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import polars as pl
import scipy.sparse
from pydantic import BaseModel, ConfigDict, field_validator

from .config import Settings, get_settings
from .document import Cell, InlineTable, ModelVerification, Row, VerificationField
from .exceptions import ConfigurationError, MissingActiveFieldsError, ShapeMismatchError
from .schema import CategoricalLabel, Label, MiningFunction
from .steps import BaseEstimator
from .tagname import create_tag_name
from .utils import format_value, is_missing

logger = logging.getLogger(__name__)


def as_matrix(values: Any) -> np.ndarray:
    """
    Converts tabular input into a read-only 2-D object array.

    Supports nested lists, NumPy arrays, SciPy sparse matrices and
    pandas / polars frames and series. One-dimensional input becomes a
    single column.
    """
    if isinstance(values, (pl.DataFrame, pl.Series)):
        values = values.to_pandas()

    if scipy.sparse.issparse(values):
        values = values.toarray()

    if isinstance(values, (pd.DataFrame, pd.Series)):
        values = values.to_numpy(dtype=object)

    if isinstance(values, (list, tuple)):
        nested = [isinstance(row, (list, tuple, np.ndarray)) for row in values]
        if any(nested):
            if not all(nested):
                raise ValueError("Expected either a vector or a matrix, got a mix of rows and scalars")
            lengths = {len(row) for row in values}
            if len(lengths) > 1:
                raise ValueError(f"Expected rows of equal length, got row lengths {sorted(lengths)}")
            matrix = np.empty((len(values), lengths.pop()), dtype=object)
            for i, row in enumerate(values):
                matrix[i, :] = list(row)
            values = matrix

    matrix = np.asarray(values, dtype=object)
    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    elif matrix.ndim != 2:
        raise ValueError(f"Expected a 1-D or 2-D array, got a {matrix.ndim}-D array")

    matrix = matrix.copy()
    matrix.flags.writeable = False
    return matrix


class Verification(BaseModel):
    """
    Golden records supplied by the caller.

    - active_values: rows x |active fields|
    - target_values: rows x |target fields| (expected predictions)
    - probability_values: rows x |categories| (expected class probabilities)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    active_values: np.ndarray
    target_values: np.ndarray
    probability_values: Optional[np.ndarray] = None
    # None defers to the compiler settings
    precision: Optional[float] = None
    zero_threshold: Optional[float] = None

    @field_validator("active_values", "target_values", "probability_values", mode="before")
    @classmethod
    def validate_matrix(cls, v: Any) -> Optional[np.ndarray]:
        if v is None:
            return None
        return as_matrix(v)

    @field_validator("precision", "zero_threshold")
    @classmethod
    def validate_tolerance(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("Verification tolerances must be non-negative")
        return v

    @classmethod
    def from_frames(
        cls,
        X: Any,
        predictions: Any,
        probabilities: Optional[Any] = None,
        precision: Optional[float] = None,
        zero_threshold: Optional[float] = None,
    ) -> "Verification":
        """
        Builds a verification block from a feature frame and the expected outputs.

        Args:
            X: Input records (pandas/polars DataFrame or array-like).
            predictions: Expected predictions, one per record.
            probabilities: Optional expected class probabilities, one column per class.
        """
        return cls(
            active_values=X,
            target_values=predictions,
            probability_values=probabilities,
            precision=precision,
            zero_threshold=zero_threshold,
        )

    @property
    def active_values_shape(self) -> Tuple[int, int]:
        return self.active_values.shape

    @property
    def target_values_shape(self) -> Tuple[int, int]:
        return self.target_values.shape

    @property
    def probability_values_shape(self) -> Optional[Tuple[int, int]]:
        if self.probability_values is None:
            return None
        return self.probability_values.shape

    @property
    def has_probability_values(self) -> bool:
        return self.probability_values is not None


def check_shape(name: str, axis: int, expected: int, shape: Tuple[int, int]) -> None:
    if shape[axis] != expected:
        raise ShapeMismatchError(name, axis, expected, shape[axis])


def create_verification_field(
    name: str,
    precision: Optional[float] = None,
    zero_threshold: Optional[float] = None,
) -> VerificationField:
    return VerificationField(
        field=name,
        column=create_tag_name(name),
        precision=precision,
        zero_threshold=zero_threshold,
    )


def build_model_verification(
    verification: Verification,
    estimator: BaseEstimator,
    label: Label,
    active_fields: Optional[Sequence[str]],
    target_fields: Sequence[str],
    settings: Optional[Settings] = None,
) -> ModelVerification:
    """
    Validates the verification data against the resolved fields and lays it out
    as a ModelVerification table.

    Tolerances left unset on the verification data fall back to the
    DEFAULT_PRECISION and DEFAULT_ZERO_THRESHOLD of `settings`
    (get_settings() when not given).

    Columns are the active fields followed by either the probability fields
    (classifiers with probability values) or the target fields.

    Raises:
        MissingActiveFieldsError: when the active field names are unknown.
        ShapeMismatchError: when a matrix disagrees with the fields or the record count.
    """
    if active_fields is None:
        raise MissingActiveFieldsError()

    active_values_shape = verification.active_values_shape
    target_values_shape = verification.target_values_shape

    rows = active_values_shape[0]

    check_shape("target_values", 0, rows, target_values_shape)
    check_shape("active_values", 1, len(active_fields), active_values_shape)

    probability_fields: Optional[List[str]] = None

    if (
        estimator.mining_function == MiningFunction.CLASSIFICATION
        and estimator.has_probability_distribution
        and verification.has_probability_values
    ):
        if not isinstance(label, CategoricalLabel):
            raise ConfigurationError(
                "Probability verification requires a categorical label",
                {"label": label.name},
            )

        probability_fields = [f"probability({value})" for value in label.values]

        probability_values_shape = verification.probability_values_shape
        check_shape("probability_values", 0, rows, probability_values_shape)
        check_shape("probability_values", 1, label.size, probability_values_shape)

    settings = settings or get_settings()
    precision = settings.DEFAULT_PRECISION if verification.precision is None else verification.precision
    zero_threshold = (
        settings.DEFAULT_ZERO_THRESHOLD if verification.zero_threshold is None else verification.zero_threshold
    )

    verification_fields: List[VerificationField] = []
    columns: List[np.ndarray] = []

    for i, active_field in enumerate(active_fields):
        verification_fields.append(create_verification_field(active_field))
        columns.append(verification.active_values[:, i])

    if probability_fields is not None:
        for i, probability_field in enumerate(probability_fields):
            verification_fields.append(
                create_verification_field(probability_field, precision=precision, zero_threshold=zero_threshold)
            )
            columns.append(verification.probability_values[:, i])
    else:
        check_shape("target_values", 1, len(target_fields), target_values_shape)

        floating = label.data_type.is_floating
        for i, target_field in enumerate(target_fields):
            if floating:
                verification_field = create_verification_field(
                    target_field, precision=precision, zero_threshold=zero_threshold
                )
            else:
                verification_field = create_verification_field(target_field)
            verification_fields.append(verification_field)
            columns.append(verification.target_values[:, i])

    keys = [verification_field.column for verification_field in verification_fields]

    inline_table = InlineTable()
    for i in range(rows):
        row = Row()
        for key, column in zip(keys, columns):
            cell = column[i]
            # Sparse encoding: missing values produce no element
            if is_missing(cell):
                continue
            row.cells.append(Cell(tag=key, value=format_value(cell)))
        inline_table.rows.append(row)

    logger.info(f"Embedding {rows} verification record(s) across {len(verification_fields)} field(s)")

    return ModelVerification(
        record_count=rows,
        verification_fields=verification_fields,
        inline_table=inline_table,
    )
