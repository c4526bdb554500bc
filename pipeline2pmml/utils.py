import math
from typing import Any, Iterable, List

import numpy as np
import pandas as pd

from .schema import DataType

# pandas.api.types.infer_dtype() result -> PMML data type
_INFERRED_DATA_TYPES = {
    "string": DataType.STRING,
    "integer": DataType.INTEGER,
    "floating": DataType.DOUBLE,
    "mixed-integer-float": DataType.DOUBLE,
    "boolean": DataType.BOOLEAN,
}


def is_missing(value: Any) -> bool:
    """True for None and for scalar missing markers (NaN, pd.NA, NaT)."""
    if value is None:
        return True
    return bool(pd.api.types.is_scalar(value) and pd.isna(value))


def format_value(value: Any) -> str:
    """
    Formats a scalar the way PMML expects it in element text and attribute values.

    Logic:
    1. NumPy scalars are unwrapped to Python scalars. float32 values keep
       their shortest single-precision spelling (0.1, not 0.10000000149011612).
    2. Booleans become 'true' / 'false'.
    3. Integral floats drop the trailing '.0' (1.0 -> '1').
    4. Non-finite floats use the XML Schema spellings (NaN, INF, -INF).
    """
    if isinstance(value, np.float32):
        value = float(str(value))
    elif isinstance(value, np.generic):
        value = value.item()

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "INF" if value > 0 else "-INF"

        string = repr(value)
        if string.endswith(".0"):
            string = string[:-2]
        return string

    return str(value)


def infer_data_type(values: Iterable[Any], default: DataType = DataType.STRING) -> DataType:
    """
    Finds the narrowest data type shared by all values.
    Falls back to `default` for empty or mixed collections.
    """
    values = list(values)
    if not values:
        return default

    if all(isinstance(value, np.float32) for value in values):
        return DataType.FLOAT

    kind = pd.api.types.infer_dtype(values, skipna=True)
    return _INFERRED_DATA_TYPES.get(kind, default)


def format_categories(values: Iterable[Any]) -> List[str]:
    return [format_value(value) for value in values]
