import math
import typing
from collections import OrderedDict
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List

from deployment.constants import (
    DEPLOY_TASK,
    DEPLOY_WITHOUT_MINT_LIMIT_TASK,
    STEP_RESOLVE,
    VERIFY_TASK,
    ZERO_ADDRESS,
)
from deployment.errors import (
    DuplicateParameterError,
    ParameterDefinitionError,
    TaskNotFoundError,
    TypeCoercionError,
    UnknownParameterError,
)

ResolvedParameters = typing.Mapping[str, Any]


def _coerce_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected text, got {type(value).__name__}")
    return value


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip(), 10)
    raise ValueError(f"expected an integer, got {type(value).__name__}")


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("expected a number, got a boolean")
    if not isinstance(value, (int, float, str)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError("expected a finite number")
    return result


class ParamType(Enum):
    """Closed set of parameter types a task may declare."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"

    def coerce(self, value: Any) -> Any:
        return _COERCERS[self](value)

    def accepts_default(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        return isinstance(value, _DEFAULT_TYPES[self])


_COERCERS = {
    ParamType.STRING: _coerce_string,
    ParamType.INT: _coerce_int,
    ParamType.FLOAT: _coerce_float,
}

_DEFAULT_TYPES = {
    ParamType.STRING: str,
    ParamType.INT: int,
    ParamType.FLOAT: float,
}


class ParameterSpec(typing.NamedTuple):
    key: str
    description: str
    default: Any
    type: ParamType


class TaskDefinition:
    """A named operation and its ordered, typed parameters."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._specs: Dict[str, ParameterSpec] = OrderedDict()

    def __repr__(self) -> str:
        return f"<TaskDefinition {self.name} ({', '.join(self._specs)})>"

    @property
    def parameters(self) -> List[ParameterSpec]:
        return list(self._specs.values())

    @property
    def keys(self) -> List[str]:
        return list(self._specs)

    def declare(
        self, key: str, description: str, default: Any, type: ParamType = ParamType.STRING
    ) -> "TaskDefinition":
        """Registers a parameter on this task. Returns the task so declarations can be chained."""
        if key in self._specs:
            raise DuplicateParameterError(f"Parameter '{key}' is already declared on '{self.name}'")
        if not type.accepts_default(default):
            raise ParameterDefinitionError(
                f"Default for '{self.name}.{key}' is {default!r}, "
                f"which is not of declared type {type.value}"
            )
        self._specs[key] = ParameterSpec(
            key=key, description=description, default=default, type=type
        )
        return self

    def resolve(self, raw_inputs: typing.Mapping[str, Any] = None) -> ResolvedParameters:
        """
        Merges supplied values onto the declared defaults and coerces each one
        to its declared type. Values of None count as not supplied.
        """
        raw_inputs = raw_inputs or dict()
        unknown = [key for key in raw_inputs if key not in self._specs]
        if unknown:
            raise UnknownParameterError(
                f"Unknown parameter(s) for '{self.name}': {', '.join(sorted(unknown))}",
                step=STEP_RESOLVE,
            )

        resolved = OrderedDict()
        for key, spec in self._specs.items():
            value = raw_inputs.get(key)
            if value is None:
                resolved[key] = spec.default
                continue
            try:
                resolved[key] = spec.type.coerce(value)
            except ValueError as e:
                raise TypeCoercionError(
                    f"Invalid value {value!r} for '{key}' ({spec.type.value}): {e}",
                    step=STEP_RESOLVE,
                )
        return MappingProxyType(resolved)


#
# Registry
#

_TASKS: Dict[str, TaskDefinition] = OrderedDict()


def register(task: TaskDefinition) -> TaskDefinition:
    if task.name in _TASKS:
        raise ParameterDefinitionError(f"Task '{task.name}' is already registered")
    _TASKS[task.name] = task
    return task


def get_task(task_name: str) -> TaskDefinition:
    try:
        return _TASKS[task_name]
    except KeyError:
        raise TaskNotFoundError(f"No task named '{task_name}'", step=STEP_RESOLVE)


def registered_tasks() -> List[TaskDefinition]:
    return list(_TASKS.values())


def resolve(task_name: str, raw_inputs: typing.Mapping[str, Any] = None) -> ResolvedParameters:
    """Resolves raw inputs against the parameters of a registered task."""
    return get_task(task_name).resolve(raw_inputs)


def _declare_token_parameters(task: TaskDefinition, mint_limit: bool = True) -> TaskDefinition:
    task.declare("name", "name of erc404", "")
    task.declare("symbol", "symbol of erc404", "")
    task.declare("uri", "metadata uri of erc404", "")
    task.declare(
        "permax", "the maximum holding limit of NFTs for a address.", 1, ParamType.INT
    )
    task.declare("nftuint", "NFT's smallest unit", 10000, ParamType.INT)
    if mint_limit:
        task.declare("mintlimit", "mint nft limit", 10000, ParamType.INT)
    task.declare("staketoken", "stake token address", ZERO_ADDRESS)
    task.declare(
        "ratio",
        "How many ERC404 tokens can be exchanged for one stake token",
        1.0,
        ParamType.FLOAT,
    )
    return task


DEPLOY = register(_declare_token_parameters(TaskDefinition(DEPLOY_TASK, "deploy erc404")))

# Same initializer call without the mint limit argument
DEPLOY_WITHOUT_MINT_LIMIT = register(
    _declare_token_parameters(
        TaskDefinition(DEPLOY_WITHOUT_MINT_LIMIT_TASK, "deploy erc404 without a mint limit"),
        mint_limit=False,
    )
)

# Only 'contract' is used; the token parameters are accepted for symmetry with deploy
VERIFY_CONTRACT = register(
    _declare_token_parameters(
        TaskDefinition(VERIFY_TASK, "verify erc404 contract").declare(
            "contract", "erc404 contract", ""
        )
    )
)
