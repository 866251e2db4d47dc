import os
import typing
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import dotenv_values

from deployment.constants import (
    DOTENV_FILEPATH,
    EXPLORER_API_KEY_ENVVARS,
    NETWORK_CHAIN_IDS,
    PASSPHRASE_ENVVAR,
    PRIVATE_KEY_ENVVAR,
    REPORT_GAS_ENVVAR,
    SUPPORTED_NETWORKS,
)


class NetworkConfig(typing.NamedTuple):
    """Chain id and explorer key of a live deployment network; endpoints live in ape-config.yaml."""

    name: str
    chain_id: int
    explorer_api_key: str


class Config(typing.NamedTuple):
    """Process-wide settings, loaded once at start and passed explicitly."""

    signers: Tuple[str, ...]
    passphrase: str
    networks: Dict[str, NetworkConfig]
    explorer_api_keys: Dict[str, str]
    report_gas: bool

    def get_network(self, name: str) -> Optional[NetworkConfig]:
        return self.networks.get(name)

    def get_explorer_api_key(self, network_name: str) -> str:
        return self.explorer_api_keys.get(network_name, "")

    @property
    def has_signer(self) -> bool:
        return bool(self.signers)


def _read_environment(environ, dotenv_path: Optional[Path]) -> Dict[str, str]:
    values = dict()
    if dotenv_path is not None and Path(dotenv_path).exists():
        values.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
    # the process environment wins over the .env file
    values.update(os.environ if environ is None else environ)
    return values


def load_config(
    environ: typing.Mapping[str, str] = None, dotenv_path: Optional[Path] = DOTENV_FILEPATH
) -> Config:
    """
    Builds the configuration from the environment and an optional .env file.
    A missing private key is not an error here; submissions fail later instead.
    """
    env = _read_environment(environ, dotenv_path)

    private_key = env.get(PRIVATE_KEY_ENVVAR)
    signers = (private_key,) if private_key else tuple()

    explorer_api_keys = {
        network: env.get(envvar, "") for network, envvar in EXPLORER_API_KEY_ENVVARS.items()
    }

    networks = dict()
    for name in SUPPORTED_NETWORKS:
        networks[name] = NetworkConfig(
            name=name,
            chain_id=NETWORK_CHAIN_IDS[name],
            explorer_api_key=explorer_api_keys.get(name, ""),
        )

    return Config(
        signers=signers,
        passphrase=env.get(PASSPHRASE_ENVVAR, ""),
        networks=networks,
        explorer_api_keys=explorer_api_keys,
        report_gas=REPORT_GAS_ENVVAR in env,
    )
