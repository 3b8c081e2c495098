import json
from collections import OrderedDict

import pytest
from eth_account import Account
from eth_utils import keccak, to_checksum_address
from hexbytes import HexBytes

from deployment.chains import ChainClient
from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.environment import DeploymentEnvironment
from deployment.errors import TransactionFailedError
from deployment.networks import Chain
from deployment.utils import _load_yaml

# Well-known development keys; never funded on a live network
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DELEGATE_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TREASURY_ADDRESS = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

BSC = Chain(
    name="bsc", chain_id=56, url="http://bsc.invalid", gas=8_000_000, gas_price=50_000_000, poa=True
)
ETH = Chain(name="eth", chain_id=1, url="http://eth.invalid", gas=8_000_000, gas_price=200_000_000)

# PUSH1 0x80 PUSH1 0x40 MSTORE
BYTECODE = "0x6080604052"

CONSTRUCTOR_ABI = {
    "type": "constructor",
    "stateMutability": "nonpayable",
    "inputs": [
        {"name": "_name", "type": "string", "internalType": "string"},
        {"name": "_symbol", "type": "string", "internalType": "string"},
        {"name": "_lzEndpoint", "type": "address", "internalType": "address"},
        {"name": "_delegate", "type": "address", "internalType": "address"},
        {"name": "_treasury", "type": "address", "internalType": "address"},
    ],
}

ARTIFACTS = {
    "EPTCross_main.sol/EPTCrossMain.json": "EPTCrossMain",
    "EPTCross_assit.sol/EPTCrossAssit.json": "EPTCrossAssit",
}


class FakeChainClient(ChainClient):
    """
    In-memory chain: nonces only move when a transaction is confirmed.
    Confirmation of the n-th submitted transaction (1-based) can be made to fail,
    and creation receipts can be made to omit the contract address.
    """

    def __init__(self, chain, nonces=None, fail_confirmation_at=None, missing_address=False):
        super().__init__(chain=chain, timeout=1)
        self.nonces = dict(nonces or {})
        self.fail_confirmation_at = fail_confirmation_at
        self.missing_address = missing_address
        self.submitted = list()
        self.confirmed = list()
        self.nonce_reads = 0
        self._pending = dict()

    def get_nonce(self, address):
        self.nonce_reads += 1
        return self.nonces.get(address, 0)

    def _submit(self, kind, account, payload=None):
        tx_hash = HexBytes(keccak(text=f"{self.name}:{len(self.submitted)}"))
        self.submitted.append((kind, account.address, payload))
        self._pending[tx_hash] = (kind, account.address, len(self.submitted))
        return tx_hash

    def send_filler(self, account):
        return self._submit("filler", account)

    def deploy_contract(self, account, artifact, args):
        return self._submit("deploy", account, (artifact.name, list(args)))

    @property
    def fillers(self):
        return [entry for entry in self.submitted if entry[0] == "filler"]

    def wait_for_receipt(self, tx_hash):
        kind, address, position = self._pending.pop(tx_hash)
        if position == self.fail_confirmation_at:
            raise TransactionFailedError(self.name, "was dropped", tx_hash=tx_hash.hex())

        nonce = self.nonces.get(address, 0)
        self.nonces[address] = nonce + 1
        self.confirmed.append(tx_hash)

        receipt = {"status": 1, "blockNumber": 100 + position, "transactionHash": tx_hash}
        if kind == "deploy" and not self.missing_address:
            created = keccak(text=f"{self.name}:{address}:{nonce}")[-20:]
            receipt["contractAddress"] = to_checksum_address(created)
        else:
            receipt["contractAddress"] = None
        return receipt


# Fixtures


@pytest.fixture
def account():
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture
def environment():
    return DeploymentEnvironment(
        private_key=PRIVATE_KEY, delegate=DELEGATE_ADDRESS, treasury=TREASURY_ADDRESS
    )


@pytest.fixture
def make_clients():
    def _make_clients(bsc_nonce, eth_nonce, **kwargs):
        bsc_kwargs = kwargs.get("bsc", {})
        eth_kwargs = kwargs.get("eth", {})
        bsc_client = FakeChainClient(BSC, nonces={DEPLOYER_ADDRESS: bsc_nonce}, **bsc_kwargs)
        eth_client = FakeChainClient(ETH, nonces={DEPLOYER_ADDRESS: eth_nonce}, **eth_kwargs)
        return OrderedDict([("bsc", bsc_client), ("eth", eth_client)])

    return _make_clients


@pytest.fixture
def artifacts_dir(tmp_path):
    directory = tmp_path / "artifacts"
    for relative_path, name in ARTIFACTS.items():
        filepath = directory / relative_path
        filepath.parent.mkdir(parents=True, exist_ok=True)
        artifact = {
            "_format": "hh-sol-artifact-1",
            "contractName": name,
            "abi": [CONSTRUCTOR_ABI],
            "bytecode": BYTECODE,
        }
        filepath.write_text(json.dumps(artifact))
    return directory


@pytest.fixture
def mainnet_config():
    return _load_yaml(CONSTRUCTOR_PARAMS_DIR / "mainnet.yml")
