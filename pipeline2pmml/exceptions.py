"""PMML compilation exceptions."""

from typing import Any, Dict, Optional, Sequence


class PMMLCompilationError(Exception):
    """Base exception for pipeline compilation."""

    def __init__(
        self,
        message: str,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ConfigurationError(PMMLCompilationError):
    """Raised when a pipeline cannot be compiled as configured."""


class EmptyPipelineError(ConfigurationError):
    """Raised when a pipeline has no steps."""

    def __init__(self):
        super().__init__("Expected one or more elements, got zero elements", {"steps": 0})


class UnsupportedMiningFunctionError(ConfigurationError):
    """Raised when a supervised estimator declares an unknown mining function."""

    def __init__(self, step: str, mining_function: Any):
        super().__init__(
            f"The estimator object ({step}) declares an unsupported mining function {mining_function!r}",
            {"step": step, "mining_function": str(mining_function)},
        )


class TargetFieldCountError(ConfigurationError):
    """Raised when the number of target fields is not exactly one."""

    def __init__(self, target_fields: Sequence[str]):
        super().__init__(
            f"Expected 1 target field, got {len(target_fields)} target fields: {list(target_fields)}",
            {"expected": 1, "actual": len(target_fields), "target_fields": list(target_fields)},
        )


class FeatureCountError(ConfigurationError):
    """Raised when the resolved features disagree with the estimator's declared arity."""

    def __init__(self, step: str, expected: int, actual: int):
        super().__init__(
            f"Expected {expected} feature(s) for the estimator object ({step}), got {actual} feature(s)",
            {"step": step, "expected": expected, "actual": actual},
        )


class MissingInputArityError(ConfigurationError):
    """Raised when active fields cannot be synthesized."""

    def __init__(self, step: str):
        super().__init__(
            f"The first transformer or estimator object ({step}) does not specify the number of input features",
            {"step": step},
        )


class MissingActiveFieldsError(ConfigurationError):
    """Raised when verification data is supplied without explicit active fields."""

    def __init__(self):
        super().__init__(
            "The 'active_fields' attribute is not set. Verification data cannot be mapped to input fields",
            {"attribute": "active_fields"},
        )


class ShapeMismatchError(ConfigurationError):
    """Raised when verification matrices do not line up."""

    def __init__(self, name: str, axis: int, expected: int, actual: int):
        dimension = "rows" if axis == 0 else "columns"
        super().__init__(
            f"Expected {expected} {dimension} in '{name}', got {actual} {dimension}",
            {"name": name, "axis": axis, "expected": expected, "actual": actual},
        )


class DuplicateFieldError(ConfigurationError):
    """Raised when two fields of the document share a name."""

    def __init__(self, name: str):
        super().__init__(f"Field '{name}' is already defined", {"field": name})
