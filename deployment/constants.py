from pathlib import Path

from web3.constants import ADDRESS_ZERO

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
NETWORKS_FILEPATH = DEPLOYMENT_DIR / "networks.yml"
# relative to the working directory the commands run from
ARTIFACTS_DIR = Path("artifacts") / "contracts"
OUTPUT_DIR = Path(".")

ADDRESSES_FILENAME_PREFIX = "addresses"

#
# Domains
#

MAINNET = "mainnet"
TESTNET = "testnet"

SUPPORTED_DOMAINS = [MAINNET, TESTNET]

#
# Contract roles
#

MAIN = "main"
ASSIST = "assist"

CONTRACT_ROLES = [MAIN, ASSIST]

#
# Environment
#

PRIVATE_KEY_ENVVAR = "PRIVATE_KEY"
DELEGATE_ADDRESS_ENVVAR = "DELEGATE_ADDRESS"
TREASURY_ADDRESS_ENVVAR = "TREASURY_ADDRESS"
API_KEY_ENVVAR = "ALCHEMY_API_KEY"

#
# Transactions
#

# seconds to wait for a receipt before giving up
DEFAULT_CONFIRMATION_TIMEOUT = 300
RECEIPT_POLL_LATENCY = 2

ZERO_ADDRESS = ADDRESS_ZERO
