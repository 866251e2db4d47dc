import pytest
from eth_utils import is_address

from deployment.config import load_config
from deployment.errors import ArtifactNotFoundError, VerificationRejectedError
from deployment.tasks import DeploymentResult, TaskExecutor

STAKE_TOKEN = "0x20cD8eB93c50BDAc35d6A526f499c0104958e3F6"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"
PROXY_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class FakeReceipt:
    txn_hash = "0xabc"
    gas_used = 123456


class FakeBlockchainClient:
    """Records every collaborator call; optionally fails at a named step."""

    def __init__(self, fail_at=None, error=None, artifacts=("ERC404Stake",)):
        self.fail_at = fail_at
        self.error = error or RuntimeError("execution reverted")
        self.artifacts = artifacts
        self.calls = []

    @property
    def submissions(self):
        return [call for call in self.calls if call[0] != "is_address"]

    def _maybe_fail(self, step):
        if self.fail_at == step:
            raise self.error

    def resolve_artifact(self, name):
        self.calls.append(("resolve_artifact", name))
        self._maybe_fail("resolve_artifact")
        if name not in self.artifacts:
            raise ArtifactNotFoundError(f"No contract found with name '{name}'.")
        return f"<{name} container>"

    def submit_proxy_deployment(self, artifact, initializer, args):
        self.calls.append(("submit_proxy_deployment", artifact, initializer, list(args)))
        self._maybe_fail("submit_proxy_deployment")
        return "handle"

    def await_confirmation(self, handle):
        self.calls.append(("await_confirmation", handle))
        self._maybe_fail("await_confirmation")
        return DeploymentResult(contract_address=PROXY_ADDRESS, receipt=FakeReceipt())

    def is_address(self, value):
        self.calls.append(("is_address", value))
        return is_address(value)


class FakeExplorer:
    def __init__(self, accept=True, error=None):
        self.accept = accept
        self.error = error
        self.requests = []

    def submit_verification(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if not self.accept:
            raise VerificationRejectedError("Fail - Unable to verify: bytecode mismatch")
        return "Pass - Verified"


@pytest.fixture
def config():
    return load_config(environ={}, dotenv_path=None)


@pytest.fixture
def client():
    return FakeBlockchainClient()


@pytest.fixture
def explorer():
    return FakeExplorer()


@pytest.fixture
def executor(config, client, explorer):
    return TaskExecutor(config=config, client=client, explorer=explorer)
