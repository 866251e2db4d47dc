import os
from types import SimpleNamespace

import pytest

from deployment import chain
from deployment.config import load_config
from deployment.errors import NetworkSubmissionError
from deployment.tasks import TaskExecutor, TaskState, VerificationRequest
from tests.conftest import DEAD_ADDRESS, STAKE_TOKEN, FakeBlockchainClient, FakeExplorer


@pytest.fixture
def client(config):
    return chain.ApeBlockchainClient(config=config)


@pytest.mark.parametrize(
    "value,expected",
    [
        (STAKE_TOKEN, True),
        (STAKE_TOKEN.lower(), True),
        ("0x" + STAKE_TOKEN[2:].upper(), True),
        (DEAD_ADDRESS, True),
        ("0x0000000000000000000000000000000000dEaD", False),
        ("0x20cd8eB93c50BDAc35d6A526f499c0104958e3F6", False),
        (STAKE_TOKEN[2:], False),
        ("not-an-address", False),
        ("", False),
    ],
)
def test_is_address(client, value, expected):
    assert client.is_address(value) is expected
    # same answer every time
    assert client.is_address(value) is expected


def test_explorer_rejects_constructor_arguments(config):
    explorer = chain.ApeExplorer(config=config)
    request = VerificationRequest(
        address=DEAD_ADDRESS,
        source_id="contracts/ERC404Stake.sol:ERC404Stake",
        constructor_arguments=("Test",),
    )
    with pytest.raises(ValueError):
        explorer.submit_verification(request)


def test_run_task_reports_outcome(config, monkeypatch, capsys):
    fake_client = FakeBlockchainClient()
    monkeypatch.setattr(chain, "ApeBlockchainClient", lambda config: fake_client)
    monkeypatch.setattr(chain, "ApeExplorer", lambda config: FakeExplorer())

    exit_code = chain.run_task("deploy", {"staketoken": STAKE_TOKEN}, config=config)
    assert exit_code == 0
    assert "ERC404Stake deployed: " in capsys.readouterr().out

    exit_code = chain.run_task("verify-contract", {"contract": "nope"}, config=config)
    assert exit_code == 1
    assert "InvalidAddressError" in capsys.readouterr().err


SELECTOR = b"\x12\x34\x56\x78"
ENCODED_ARGS = b"\x00" * 32


class FakeEcosystem:
    name = "ethereum"

    def __init__(self, encode_error=None):
        self.encode_error = encode_error
        self.calls = []

    def get_method_selector(self, abi):
        self.calls.append(("get_method_selector", abi))
        return SELECTOR

    def encode_calldata(self, abi, *args):
        self.calls.append(("encode_calldata", args))
        if self.encode_error:
            raise self.encode_error
        return ENCODED_ARGS


class FakeAccount:
    address = STAKE_TOKEN

    def __init__(self):
        self.deployed = []

    def deploy(self, container, *args):
        self.deployed.append((container, args))
        return SimpleNamespace(address=DEAD_ADDRESS)


ARTIFACT = SimpleNamespace(
    contract_type=SimpleNamespace(name="ERC404Stake", mutable_methods={"initialize": "<abi>"})
)
PROXY_CONTAINER = SimpleNamespace(
    contract_type=SimpleNamespace(name="TransparentUpgradeableProxy")
)


def connect(monkeypatch, name="coq", chain_id=12077, ecosystem=None):
    network = SimpleNamespace(
        name=name, chain_id=chain_id, ecosystem=ecosystem or FakeEcosystem(), explorer=None
    )
    provider = SimpleNamespace(network=network)
    monkeypatch.setattr(chain, "networks", SimpleNamespace(provider=provider))
    return network


def test_check_network_rejects_chain_id_mismatch(config, monkeypatch):
    connect(monkeypatch, name="coq", chain_id=1)
    with pytest.raises(NetworkSubmissionError) as e:
        chain.check_network(config)
    assert e.value.step == "deploy-proxy"
    assert "12077" in e.value.reason


@pytest.mark.parametrize(
    "name,chain_id", [("coq", 12077), ("bsctestnet", 97), ("local", 1337), ("sepolia", 11155111)]
)
def test_check_network_accepts(config, monkeypatch, name, chain_id):
    connect(monkeypatch, name=name, chain_id=chain_id)
    chain.check_network(config)


def test_get_account_without_signer_fails_at_submission(config, monkeypatch):
    connect(monkeypatch)
    client = chain.ApeBlockchainClient(config=config)
    with pytest.raises(NetworkSubmissionError) as e:
        client.get_account()
    assert e.value.step == "deploy-proxy"
    assert "PRIVATE_KEY" in e.value.reason


def test_deploy_without_signer_fails(config, monkeypatch):
    connect(monkeypatch)

    class Client(chain.ApeBlockchainClient):
        def resolve_artifact(self, name):
            return ARTIFACT

    executor = TaskExecutor(config=config, client=Client(config=config))
    outcome = executor.run("deploy", {"staketoken": STAKE_TOKEN})

    assert outcome.state is TaskState.FAILED
    assert isinstance(outcome.error, NetworkSubmissionError)
    assert outcome.error.step == "deploy-proxy"


def test_initializer_encoding_failure_sends_nothing(config, monkeypatch):
    connect(monkeypatch, ecosystem=FakeEcosystem(encode_error=OverflowError("uint256")))
    account = FakeAccount()
    client = chain.ApeBlockchainClient(config=config, account=account)

    with pytest.raises(OverflowError):
        client.submit_proxy_deployment(ARTIFACT, "initialize", ["Test", -1])
    assert account.deployed == []


def test_submit_proxy_deployment(config, monkeypatch):
    ecosystem = FakeEcosystem()
    connect(monkeypatch, ecosystem=ecosystem)
    monkeypatch.setattr(chain, "get_proxy_container", lambda: PROXY_CONTAINER)
    account = FakeAccount()
    client = chain.ApeBlockchainClient(config=config, account=account)

    handle = client.submit_proxy_deployment(ARTIFACT, "initialize", ["Test", 1])

    assert ecosystem.calls == [
        ("get_method_selector", "<abi>"),
        ("encode_calldata", ("Test", 1)),
    ]
    assert account.deployed == [
        (ARTIFACT, ()),
        (PROXY_CONTAINER, (DEAD_ADDRESS, STAKE_TOKEN, SELECTOR + ENCODED_ARGS)),
    ]
    assert handle.container is ARTIFACT


@pytest.fixture
def plugin_envvar(monkeypatch):
    monkeypatch.setattr(chain, "API_KEY_ENV_KEY_MAP", {"ethereum": "ETHERSCAN_API_KEY"})
    # registered with monkeypatch so that whatever the explorer exports is undone
    monkeypatch.setenv("ETHERSCAN_API_KEY", "")
    return "ETHERSCAN_API_KEY"


@pytest.mark.parametrize(
    "network,environ,expected",
    [
        ("coq", {"ETH_API_KEY": "eth-key"}, "eth-key"),
        ("bsctestnet", {"BSCSCAN_API_KEY": "bsc-key"}, "bsc-key"),
        ("bsctestnet", {"BSCSCAN_API_KEY": "bsc-key", "ETH_API_KEY": "eth-key"}, "bsc-key"),
        # unconfigured network falls back to the ecosystem key
        ("mainnet", {"ETH_API_KEY": "eth-key"}, "eth-key"),
    ],
)
def test_export_api_key(monkeypatch, plugin_envvar, network, environ, expected):
    connect(monkeypatch, name=network, chain_id=1)
    explorer = chain.ApeExplorer(config=load_config(environ=environ, dotenv_path=None))

    explorer.export_api_key()
    assert os.environ[plugin_envvar] == expected


def test_export_api_key_keeps_plugin_variable(config, monkeypatch, plugin_envvar):
    connect(monkeypatch)
    monkeypatch.setenv(plugin_envvar, "already-set")
    chain.ApeExplorer(config=config).export_api_key()
    assert os.environ[plugin_envvar] == "already-set"


def test_export_api_key_missing(config, monkeypatch, plugin_envvar):
    connect(monkeypatch)
    with pytest.raises(NetworkSubmissionError) as e:
        chain.ApeExplorer(config=config).export_api_key()
    assert e.value.step == "submit-verification"
    assert plugin_envvar in e.value.reason


def test_export_api_key_unknown_ecosystem(monkeypatch, plugin_envvar):
    ecosystem = FakeEcosystem()
    ecosystem.name = "starknet"
    connect(monkeypatch, ecosystem=ecosystem)
    explorer = chain.ApeExplorer(config=load_config(environ={"ETH_API_KEY": "k"}, dotenv_path=None))
    with pytest.raises(NetworkSubmissionError):
        explorer.export_api_key()


def test_export_api_key_skipped_on_local(config, monkeypatch, plugin_envvar):
    connect(monkeypatch, name="local", chain_id=1337)
    chain.ApeExplorer(config=config).export_api_key()
    assert os.environ[plugin_envvar] == ""
