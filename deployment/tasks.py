import typing
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from deployment.config import Config
from deployment.constants import (
    CONTRACT_NAME,
    CONTRACT_SOURCE_ID,
    DEPLOY_TASK,
    DEPLOY_WITHOUT_MINT_LIMIT_TASK,
    INITIALIZER,
    RATIO_SCALE,
    STEP_AWAIT_CONFIRMATION,
    STEP_DEPLOY_PROXY,
    STEP_RESOLVE_ARTIFACT,
    STEP_SUBMIT_VERIFICATION,
    STEP_VALIDATE,
    VERIFY_TASK,
)
from deployment.errors import (
    InvalidAddressError,
    NetworkSubmissionError,
    TaskError,
    TypeCoercionError,
)
from deployment.params import ResolvedParameters, get_task


class TaskState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    ABORTED = "aborted"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DeploymentResult(typing.NamedTuple):
    contract_address: str
    receipt: Any = None


class VerificationRequest(typing.NamedTuple):
    address: str
    source_id: str
    constructor_arguments: typing.Tuple[Any, ...] = ()


class VerificationResult(typing.NamedTuple):
    contract_address: str
    acknowledgment: Any = None


class Outcome(typing.NamedTuple):
    task: str
    state: TaskState
    result: Optional[typing.Union[DeploymentResult, VerificationResult]] = None
    error: Optional[TaskError] = None

    @property
    def succeeded(self) -> bool:
        return self.state is TaskState.SUCCEEDED


class BlockchainClient(typing.Protocol):
    def resolve_artifact(self, name: str) -> Any:
        ...

    def submit_proxy_deployment(self, artifact: Any, initializer: str, args: List[Any]) -> Any:
        ...

    def await_confirmation(self, handle: Any) -> DeploymentResult:
        ...

    def is_address(self, value: str) -> bool:
        ...


class Explorer(typing.Protocol):
    def submit_verification(self, request: VerificationRequest) -> Any:
        ...


#
# Argument builders
#


def scale_ratio(ratio: float) -> int:
    """
    Converts a ratio to the fixed point integer stored on chain.
    The decimal text of the float is used so that 0.5 gives exactly 5000.
    """
    scaled = Decimal(repr(ratio)) * RATIO_SCALE
    if scaled != scaled.to_integral_value():
        raise TypeCoercionError(
            f"ratio {ratio} does not scale to a whole number (x{RATIO_SCALE})",
            step=STEP_VALIDATE,
        )
    if scaled < 0:
        raise TypeCoercionError(f"ratio {ratio} must not be negative", step=STEP_VALIDATE)
    return int(scaled)


def initializer_args_with_mint_limit(params: ResolvedParameters) -> List[Any]:
    return [
        params["name"],
        params["symbol"],
        params["uri"],
        params["permax"],
        params["nftuint"],
        params["mintlimit"],
        params["staketoken"],
        scale_ratio(params["ratio"]),
    ]


def initializer_args_without_mint_limit(params: ResolvedParameters) -> List[Any]:
    return [
        params["name"],
        params["symbol"],
        params["uri"],
        params["permax"],
        params["nftuint"],
        params["staketoken"],
        scale_ratio(params["ratio"]),
    ]


ArgumentBuilder = Callable[[ResolvedParameters], List[Any]]

DEPLOY_ARGUMENT_BUILDERS: Dict[str, ArgumentBuilder] = {
    DEPLOY_TASK: initializer_args_with_mint_limit,
    DEPLOY_WITHOUT_MINT_LIMIT_TASK: initializer_args_without_mint_limit,
}

UNSIGNED_PARAMETERS = ("permax", "nftuint", "mintlimit")


def _call_step(step: str, method: Callable, *args) -> Any:
    """Runs one collaborator call; anything it raises is reported against the step."""
    try:
        return method(*args)
    except TaskError as e:
        e.step = e.step or step
        raise
    except Exception as e:
        raise NetworkSubmissionError(str(e) or type(e).__name__, step=step) from e


class TaskExecutor:
    """
    Runs a registered task against injected collaborators: validates the
    resolved parameters locally, then performs each network step in order.
    """

    def __init__(self, config: Config, client: BlockchainClient, explorer: Explorer = None):
        self.config = config
        self.client = client
        self.explorer = explorer
        self.state = TaskState.IDLE

    def _transition(self, state: TaskState) -> None:
        print(f"({self.state.value} -> {state.value})")
        self.state = state

    def run(self, task_name: str, raw_inputs: typing.Mapping[str, Any] = None) -> Outcome:
        """Resolves, validates and executes a task. Task errors are returned, never raised."""
        self.state = TaskState.IDLE
        try:
            params = get_task(task_name).resolve(raw_inputs)
        except TaskError as e:
            self._transition(TaskState.ABORTED)
            return Outcome(task=task_name, state=self.state, error=e)

        if task_name == VERIFY_TASK:
            return self.verify(params)
        return self.deploy(params, task_name=task_name)

    #
    # Validation
    #

    def _check_address(self, key: str, value: str) -> None:
        # the prefix is required even where the client would accept bare hex
        prefixed = isinstance(value, str) and value.startswith("0x")
        if not (prefixed and self.client.is_address(value)):
            raise InvalidAddressError(f"invalid {key} address: {value!r}", step=STEP_VALIDATE)

    def _validate_deploy(self, params: ResolvedParameters, build: ArgumentBuilder) -> List[Any]:
        self._check_address("staketoken", params["staketoken"])
        for key in UNSIGNED_PARAMETERS:
            if key in params and params[key] < 0:
                raise TypeCoercionError(
                    f"{key} must not be negative, got {params[key]}", step=STEP_VALIDATE
                )
        return build(params)

    #
    # Sequences
    #

    def deploy(self, params: ResolvedParameters, task_name: str = DEPLOY_TASK) -> Outcome:
        try:
            build = DEPLOY_ARGUMENT_BUILDERS[task_name]
        except KeyError:
            raise ValueError(f"'{task_name}' is not a deploy task")

        self._transition(TaskState.VALIDATING)
        try:
            args = self._validate_deploy(params, build)
        except TaskError as e:
            self._transition(TaskState.ABORTED)
            return Outcome(task=task_name, state=self.state, error=e)

        self._transition(TaskState.EXECUTING)
        try:
            result = self._deploy_proxy(args)
        except TaskError as e:
            self._transition(TaskState.FAILED)
            return Outcome(task=task_name, state=self.state, error=e)

        self._transition(TaskState.SUCCEEDED)
        return Outcome(task=task_name, state=self.state, result=result)

    def _deploy_proxy(self, args: List[Any]) -> DeploymentResult:
        artifact = _call_step(STEP_RESOLVE_ARTIFACT, self.client.resolve_artifact, CONTRACT_NAME)

        pretty_args = "\n\t".join(repr(arg) for arg in args)
        print(f"\nDeploying {CONTRACT_NAME} proxy, {INITIALIZER} arguments:\n\t{pretty_args}")
        handle = _call_step(
            STEP_DEPLOY_PROXY, self.client.submit_proxy_deployment, artifact, INITIALIZER, args
        )
        result = _call_step(STEP_AWAIT_CONFIRMATION, self.client.await_confirmation, handle)

        if self.config.report_gas and result.receipt is not None:
            print(f"Gas used: {getattr(result.receipt, 'gas_used', 'unknown')}")
        return result

    def verify(self, params: ResolvedParameters) -> Outcome:
        self._transition(TaskState.VALIDATING)
        address = params["contract"]
        try:
            self._check_address("contract", address)
        except TaskError as e:
            self._transition(TaskState.ABORTED)
            return Outcome(task=VERIFY_TASK, state=self.state, error=e)

        self._transition(TaskState.EXECUTING)
        # the proxy was initialized through the initializer, so there is nothing to replay
        request = VerificationRequest(
            address=address, source_id=CONTRACT_SOURCE_ID, constructor_arguments=()
        )
        try:
            if self.explorer is None:
                raise NetworkSubmissionError(
                    "no explorer configured", step=STEP_SUBMIT_VERIFICATION
                )
            print(f"(i) Verifying {request.source_id} at {request.address}...")
            acknowledgment = _call_step(
                STEP_SUBMIT_VERIFICATION, self.explorer.submit_verification, request
            )
        except TaskError as e:
            self._transition(TaskState.FAILED)
            return Outcome(task=VERIFY_TASK, state=self.state, error=e)

        self._transition(TaskState.SUCCEEDED)
        return Outcome(
            task=VERIFY_TASK,
            state=self.state,
            result=VerificationResult(contract_address=address, acknowledgment=acknowledgment),
        )
