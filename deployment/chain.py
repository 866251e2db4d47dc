import os
import typing
from typing import Any, List, Optional

from ape import accounts, networks, project
from ape.api import AccountAPI, ReceiptAPI
from ape.contracts.base import ContractContainer, ContractInstance
from ape_accounts import import_account_from_private_key
from ape_etherscan.exceptions import ContractVerificationError
from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.config import Config, load_config
from deployment.constants import (
    DEPLOYER_ACCOUNT_ALIAS,
    LOCAL_NETWORKS,
    OZ_DEPENDENCY_NAME,
    OZ_DEPENDENCY_VERSION,
    PROXY_CONTRACT_NAME,
    STEP_DEPLOY_PROXY,
    STEP_RESOLVE_ARTIFACT,
    STEP_SUBMIT_VERIFICATION,
)
from deployment.errors import (
    ArtifactNotFoundError,
    NetworkSubmissionError,
    VerificationRejectedError,
)
from deployment.reporter import report
from deployment.tasks import DeploymentResult, TaskExecutor, VerificationRequest


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def get_contract_container(contract: str) -> ContractContainer:
    try:
        return getattr(project, contract)
    except AttributeError:
        raise ArtifactNotFoundError(
            f"No contract found with name '{contract}'.", step=STEP_RESOLVE_ARTIFACT
        )


def is_well_formed_address(value: str) -> bool:
    """0x-prefixed 20 byte hex; mixed case must carry a valid EIP-55 checksum."""
    return isinstance(value, str) and value.startswith("0x") and is_address(value)


def encode_initializer(artifact: ContractContainer, initializer: str, args: List[Any]) -> bytes:
    """Builds the proxy's initializer calldata from the contract ABI alone."""
    method_abi = artifact.contract_type.mutable_methods[initializer]
    ecosystem = networks.provider.network.ecosystem
    selector = ecosystem.get_method_selector(method_abi)
    return bytes(selector) + bytes(ecosystem.encode_calldata(method_abi, *args))


def get_proxy_container() -> ContractContainer:
    dependency = project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
    return getattr(dependency, PROXY_CONTRACT_NAME)


def check_network(config: Config) -> None:
    """Checks that the connected chain is the one configured under the same network name."""
    if is_local_network():
        return
    network = networks.provider.network
    network_config = config.get_network(network.name)
    if network_config is None:
        return
    if network_config.chain_id != network.chain_id:
        raise NetworkSubmissionError(
            f"chain_id of network '{network.name}' ({network.chain_id}) does not match "
            f"the configured chain_id ({network_config.chain_id}).",
            step=STEP_DEPLOY_PROXY,
        )


class ProxyDeployment(typing.NamedTuple):
    implementation: ContractInstance
    proxy: ContractInstance
    container: ContractContainer


class ApeBlockchainClient:
    """
    Deploys through the connected ape provider: implementation first, then an
    OpenZeppelin transparent proxy whose constructor calls the initializer.
    """

    def __init__(self, config: Config, account: Optional[AccountAPI] = None):
        self.config = config
        self._account = account

    def get_account(self) -> AccountAPI:
        if self._account is not None:
            return self._account

        if is_local_network():
            self._account = accounts.test_accounts[0]
            return self._account

        if not self.config.has_signer:
            raise NetworkSubmissionError(
                "No signer configured; set PRIVATE_KEY.", step=STEP_DEPLOY_PROXY
            )

        if DEPLOYER_ACCOUNT_ALIAS in accounts.aliases:
            account = accounts.load(DEPLOYER_ACCOUNT_ALIAS)
        else:
            account = import_account_from_private_key(
                DEPLOYER_ACCOUNT_ALIAS, self.config.passphrase, self.config.signers[0]
            )
            print(f"Account imported: {account.address}")
        account.set_autosign(True, passphrase=self.config.passphrase)
        self._account = account
        return self._account

    def resolve_artifact(self, name: str) -> ContractContainer:
        return get_contract_container(name)

    def submit_proxy_deployment(
        self, artifact: ContractContainer, initializer: str, args: List[Any]
    ) -> ProxyDeployment:
        check_network(self.config)
        deployer = self.get_account()
        contract_name = artifact.contract_type.name
        print(
            f"Account: {deployer.address}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            sep="\n",
        )

        # encoded before anything is sent so bad arguments leave nothing on chain
        data = encode_initializer(artifact, initializer, args)

        implementation = deployer.deploy(artifact)
        print(f"\n{contract_name} implementation deployed at {implementation.address}")

        proxy_container = get_proxy_container()
        print(
            f"\nDeploying {proxy_container.contract_type.name} "
            f"contract to proxy {contract_name}."
        )
        proxy = deployer.deploy(proxy_container, implementation.address, deployer.address, data)
        return ProxyDeployment(implementation=implementation, proxy=proxy, container=artifact)

    def await_confirmation(self, handle: ProxyDeployment) -> DeploymentResult:
        receipt: ReceiptAPI = handle.proxy.receipt
        receipt.await_confirmations()
        wrapped = handle.container.at(handle.proxy.address)
        return DeploymentResult(
            contract_address=to_checksum_address(wrapped.address), receipt=receipt
        )

    def is_address(self, value: str) -> bool:
        return is_well_formed_address(value)


class ApeExplorer:
    """Publishes contract sources through the explorer plugin of the connected network."""

    def __init__(self, config: Config):
        self.config = config

    def export_api_key(self) -> None:
        """
        Hands the configured explorer key to the explorer plugin, which only reads
        its own per-ecosystem environment variable.
        """
        if is_local_network():
            return
        network_name = networks.provider.network.name
        ecosystem_name = networks.provider.network.ecosystem.name
        explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
        if not explorer_envvar:
            raise NetworkSubmissionError(
                f"No explorer API key variable known for ecosystem '{ecosystem_name}'",
                step=STEP_SUBMIT_VERIFICATION,
            )

        api_key = self.config.get_explorer_api_key(network_name)
        api_key = api_key or self.config.get_explorer_api_key(ecosystem_name)
        if api_key:
            os.environ[explorer_envvar] = api_key
        elif not os.environ.get(explorer_envvar):
            raise NetworkSubmissionError(
                f"{explorer_envvar} is not set.", step=STEP_SUBMIT_VERIFICATION
            )

    def submit_verification(self, request: VerificationRequest) -> ChecksumAddress:
        if request.constructor_arguments:
            raise ValueError("Constructor arguments are derived by the explorer plugin")
        self.export_api_key()

        explorer = networks.provider.network.explorer
        if explorer is None:
            raise NetworkSubmissionError(
                f"No explorer available for network '{networks.provider.network.name}'",
                step=STEP_SUBMIT_VERIFICATION,
            )

        _, contract_name = request.source_id.split(":")
        contract_container = get_contract_container(contract_name)

        address = to_checksum_address(request.address)
        proxy_info = networks.provider.network.ecosystem.get_proxy_info(address)
        if proxy_info:
            # we have an instance of a proxy contract, but need the underlying implementation
            print(
                f"Proxy contract detected; verifying implementation contract at {proxy_info.target}"
            )
            address = proxy_info.target
        contract_instance = contract_container.at(address)

        try:
            explorer.publish_contract(contract_instance.address)
        except ContractVerificationError as e:
            raise VerificationRejectedError(str(e), step=STEP_SUBMIT_VERIFICATION) from e
        return contract_instance.address


def run_task(task_name: str, raw_inputs: typing.Mapping[str, Any], config: Config = None) -> int:
    """Runs a task against the connected network and reports its outcome."""
    config = config or load_config()
    executor = TaskExecutor(
        config=config,
        client=ApeBlockchainClient(config=config),
        explorer=ApeExplorer(config=config),
    )
    outcome = executor.run(task_name, raw_inputs)
    return report(outcome)
