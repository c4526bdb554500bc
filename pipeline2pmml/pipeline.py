"""Pipeline descriptor consumed by the compiler."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import EmptyPipelineError
from .steps import BaseEstimator, BaseTransformer
from .verification import Verification

logger = logging.getLogger(__name__)

RECOGNIZED_ATTRIBUTES = ("active_fields", "target_field", "target_fields", "repr_", "verification")

Step = Union[BaseTransformer, BaseEstimator]


def _as_name_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, np.ndarray):
        value = value.tolist()
    return [str(name) for name in value]


class PipelineDescriptor(BaseModel):
    """
    A trained pipeline: transformer steps followed by one estimator.

    Optional fields are None when the corresponding attribute was never set.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    transformers: List[BaseTransformer] = Field(default_factory=list)
    estimator: BaseEstimator
    active_fields: Optional[List[str]] = None
    target_fields: Optional[List[str]] = None
    repr: Optional[str] = None
    verification: Optional[Verification] = None

    @field_validator("active_fields", "target_fields", mode="before")
    @classmethod
    def validate_names(cls, v: Any) -> Optional[List[str]]:
        return _as_name_list(v)

    @classmethod
    def from_steps(
        cls,
        steps: Sequence[Union[Step, Tuple[str, Step]]],
        **kwargs: Any,
    ) -> "PipelineDescriptor":
        """
        Splits a step list into transformers and the final estimator.
        Steps may be bare step objects or (name, step) tuples.
        """
        objects = [step[1] if isinstance(step, tuple) else step for step in steps]
        if len(objects) < 1:
            raise EmptyPipelineError()

        return cls(transformers=objects[:-1], estimator=objects[-1], **kwargs)

    @classmethod
    def from_attributes(
        cls,
        steps: Sequence[Union[Step, Tuple[str, Step]]],
        attributes: Mapping[str, Any],
    ) -> "PipelineDescriptor":
        """
        Builds a descriptor from a loosely typed attribute map.

        Logic:
        1. 'active_fields' -> active_fields
        2. legacy 'target_field' (single name) wins over 'target_fields'
        3. 'repr_' -> repr
        4. 'verification' -> verification (a Verification or a dict of its fields)
        Unrecognized attributes are ignored.
        """
        ignored = sorted(key for key in attributes if key not in RECOGNIZED_ATTRIBUTES)
        if ignored:
            logger.debug(f"Ignoring unrecognized pipeline attributes: {ignored}")

        target_fields: Optional[List[str]] = None
        if "target_field" in attributes:
            target_fields = _as_name_list(attributes["target_field"])
        elif "target_fields" in attributes:
            target_fields = _as_name_list(attributes["target_fields"])

        verification = attributes.get("verification")
        if isinstance(verification, dict):
            verification = Verification(**verification)

        return cls.from_steps(
            steps,
            active_fields=attributes.get("active_fields"),
            target_fields=target_fields,
            repr=attributes.get("repr_"),
            verification=verification,
        )

    @property
    def steps(self) -> List[Step]:
        return [*self.transformers, self.estimator]

    @property
    def head(self) -> Step:
        """First step of the pipeline (the estimator when there are no transformers)."""
        return self.transformers[0] if self.transformers else self.estimator

    def to_attributes(self) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}
        if self.active_fields is not None:
            attributes["active_fields"] = list(self.active_fields)
        if self.target_fields is not None:
            attributes["target_fields"] = list(self.target_fields)
        if self.repr is not None:
            attributes["repr_"] = self.repr
        if self.verification is not None:
            attributes["verification"] = self.verification
        return attributes
