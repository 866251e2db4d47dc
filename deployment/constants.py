from pathlib import Path

#
# Filesystem
#

DEPLOYMENT_DIR = Path(__file__).parent
PROJECT_ROOT = DEPLOYMENT_DIR.parent
DOTENV_FILEPATH = PROJECT_ROOT / ".env"

#
# Networks
#

COQ = "coq"
BSC_TESTNET = "bsctestnet"

SUPPORTED_NETWORKS = [COQ, BSC_TESTNET]

LOCAL_NETWORKS = ["local"]

NETWORK_CHAIN_IDS = {
    COQ: 12077,
    BSC_TESTNET: 97,
}

#
# Environment
#

PRIVATE_KEY_ENVVAR = "PRIVATE_KEY"
PASSPHRASE_ENVVAR = "DEPLOYER_PASSPHRASE"
REPORT_GAS_ENVVAR = "REPORT_GAS"

# coq has no explorer key of its own and shares the ethereum one
EXPLORER_API_KEY_ENVVARS = {
    "ethereum": "ETH_API_KEY",
    COQ: "ETH_API_KEY",
    BSC_TESTNET: "BSCSCAN_API_KEY",
}

DEPLOYER_ACCOUNT_ALIAS = "ERC404_DEPLOYER"

#
# Contracts
#

ZERO_ADDRESS = "0x" + "0" * 40

CONTRACT_NAME = "ERC404Stake"
CONTRACT_SOURCE_ID = f"contracts/{CONTRACT_NAME}.sol:{CONTRACT_NAME}"
INITIALIZER = "initialize"

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"
PROXY_CONTRACT_NAME = "TransparentUpgradeableProxy"

# ratio is stored on chain as a fixed point integer
RATIO_SCALE = 10000

#
# Tasks
#

DEPLOY_TASK = "deploy"
DEPLOY_WITHOUT_MINT_LIMIT_TASK = "deploy-without-mintlimit"
VERIFY_TASK = "verify-contract"

# Step names used in failure reports
STEP_RESOLVE = "resolve-parameters"
STEP_VALIDATE = "validate"
STEP_RESOLVE_ARTIFACT = "resolve-artifact"
STEP_DEPLOY_PROXY = "deploy-proxy"
STEP_AWAIT_CONFIRMATION = "await-confirmation"
STEP_SUBMIT_VERIFICATION = "submit-verification"
