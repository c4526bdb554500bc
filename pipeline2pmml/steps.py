from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from .document import Model
from .schema import DataType, Feature, MiningFunction, OpType, Schema

if TYPE_CHECKING:
    from .encoder import PMMLEncoder


class BaseStep(ABC):
    """
    Capability surface of a pipeline step.

    Everything the compiler needs to know about a step is fixed when the step
    is constructed:
    - n_features: declared input arity, -1 when unknown
    - op_type / data_type: declared type of the step's input fields
    """

    def __init__(
        self,
        name: Optional[str] = None,
        n_features: int = -1,
        op_type: OpType = OpType.CONTINUOUS,
        data_type: DataType = DataType.DOUBLE,
    ):
        self.name = name or type(self).__name__
        self.n_features = n_features
        self.op_type = op_type
        self.data_type = data_type

    def describe(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def __repr__(self) -> str:
        return self.describe()


class BaseTransformer(BaseStep):
    # Initializers create their own features instead of consuming active fields
    initializer: bool = False

    @abstractmethod
    def encode_features(self, features: List[Feature], encoder: "PMMLEncoder") -> List[Feature]:
        """
        Maps the incoming features to the features this step outputs.
        New fields are declared through the encoder.
        """
        pass


class PassthroughTransformer(BaseTransformer):
    """Transformer that forwards its input features unchanged."""

    def encode_features(self, features: List[Feature], encoder: "PMMLEncoder") -> List[Feature]:
        return list(features)


class BaseEstimator(BaseStep):
    def __init__(
        self,
        name: Optional[str] = None,
        n_features: int = -1,
        op_type: OpType = OpType.CONTINUOUS,
        data_type: DataType = DataType.DOUBLE,
        mining_function: Optional[MiningFunction] = None,
        supervised: bool = True,
    ):
        super().__init__(name=name, n_features=n_features, op_type=op_type, data_type=data_type)
        self.mining_function = mining_function
        self.supervised = supervised

    @property
    def classes(self) -> Optional[List[Any]]:
        return None

    @property
    def has_probability_distribution(self) -> bool:
        return False

    @abstractmethod
    def encode_model(self, schema: Schema) -> Model:
        """Encodes the fitted model for the resolved label and features."""
        pass


class BaseClassifier(BaseEstimator):
    def __init__(
        self,
        classes: Sequence[Any],
        has_probability_distribution: bool = True,
        name: Optional[str] = None,
        n_features: int = -1,
        op_type: OpType = OpType.CONTINUOUS,
        data_type: DataType = DataType.DOUBLE,
    ):
        super().__init__(
            name=name,
            n_features=n_features,
            op_type=op_type,
            data_type=data_type,
            mining_function=MiningFunction.CLASSIFICATION,
            supervised=True,
        )
        self._classes = list(classes)
        self._has_probability_distribution = has_probability_distribution

    @property
    def classes(self) -> List[Any]:
        return list(self._classes)

    @property
    def has_probability_distribution(self) -> bool:
        return self._has_probability_distribution


class BaseRegressor(BaseEstimator):
    def __init__(
        self,
        name: Optional[str] = None,
        n_features: int = -1,
        op_type: OpType = OpType.CONTINUOUS,
        data_type: DataType = DataType.DOUBLE,
    ):
        super().__init__(
            name=name,
            n_features=n_features,
            op_type=op_type,
            data_type=data_type,
            mining_function=MiningFunction.REGRESSION,
            supervised=True,
        )
