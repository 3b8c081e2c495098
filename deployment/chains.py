from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception, Web3RPCError
from web3.middleware import ExtraDataToPOAMiddleware
from web3.types import TxParams, TxReceipt

from deployment.artifacts import ContractArtifact
from deployment.constants import DEFAULT_CONFIRMATION_TIMEOUT, RECEIPT_POLL_LATENCY
from deployment.errors import (
    ConfirmationTimeout,
    NetworkError,
    TransactionFailedError,
)
from deployment.networks import Chain

# seconds before a single RPC request is abandoned
REQUEST_TIMEOUT = 30


class ChainClient(ABC):
    """
    Read and write access to one chain on behalf of one deploying account.
    Clients never share state; every chain gets its own instance.
    """

    def __init__(self, chain: Chain, timeout: float = DEFAULT_CONFIRMATION_TIMEOUT):
        self.chain = chain
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.chain.name

    @abstractmethod
    def get_nonce(self, address: ChecksumAddress) -> int:
        """Returns the number of transactions sent from the address."""
        raise NotImplementedError

    @abstractmethod
    def send_filler(self, account: LocalAccount) -> HexBytes:
        """Sends a zero-value transaction from the account to itself."""
        raise NotImplementedError

    @abstractmethod
    def deploy_contract(
        self, account: LocalAccount, artifact: ContractArtifact, args: List[Any]
    ) -> HexBytes:
        """Sends a contract creation transaction."""
        raise NotImplementedError

    @abstractmethod
    def wait_for_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        """Blocks until the transaction is mined and returns its receipt."""
        raise NotImplementedError


class Web3ChainClient(ChainClient):
    """ChainClient over a web3.py HTTP provider, using the chain's static gas settings."""

    def __init__(
        self,
        chain: Chain,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        w3: Optional[Web3] = None,
    ):
        super().__init__(chain=chain, timeout=timeout)
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(chain.url, request_kwargs={"timeout": REQUEST_TIMEOUT}))
            if chain.poa:
                w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3

    def get_nonce(self, address: ChecksumAddress, block_identifier: str = "latest") -> int:
        try:
            nonce = self.w3.eth.get_transaction_count(address, block_identifier)
        except (requests.RequestException, Web3Exception) as e:
            raise NetworkError(self.name, f"could not read nonce of {address}: {e}") from e

        if not isinstance(nonce, int) or isinstance(nonce, bool) or nonce < 0:
            raise NetworkError(self.name, f"malformed nonce {nonce!r} for {address}")
        return nonce

    def _base_transaction(self, account: LocalAccount) -> Dict[str, Any]:
        return {
            "from": account.address,
            "gas": self.chain.gas,
            "gasPrice": self.chain.gas_price,
            "chainId": self.chain.chain_id,
            "value": 0,
        }

    def _sign_and_send(self, account: LocalAccount, transaction: TxParams) -> HexBytes:
        transaction = dict(transaction)
        # the pending count accounts for transactions still in the mempool
        transaction["nonce"] = self.get_nonce(account.address, "pending")
        signed = account.sign_transaction(transaction)
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Web3RPCError as e:
            raise TransactionFailedError(self.name, f"was rejected: {e}") from e
        except (requests.RequestException, Web3Exception) as e:
            raise NetworkError(self.name, f"could not submit transaction: {e}") from e
        return HexBytes(tx_hash)

    def send_filler(self, account: LocalAccount) -> HexBytes:
        transaction = self._base_transaction(account)
        transaction["to"] = account.address
        return self._sign_and_send(account, transaction)

    def deploy_contract(
        self, account: LocalAccount, artifact: ContractArtifact, args: List[Any]
    ) -> HexBytes:
        container = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        transaction = container.constructor(*args).build_transaction(
            self._base_transaction(account)
        )
        return self._sign_and_send(account, transaction)

    def wait_for_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        tx_hex = Web3.to_hex(tx_hash)
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.timeout, poll_latency=RECEIPT_POLL_LATENCY
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                self.name, f"was not confirmed within {self.timeout} seconds", tx_hash=tx_hex
            ) from e
        except (requests.RequestException, Web3Exception) as e:
            raise NetworkError(self.name, f"could not fetch receipt for {tx_hex}: {e}") from e

        if receipt["status"] != 1:
            raise TransactionFailedError(self.name, "reverted", tx_hash=tx_hex)
        return receipt


def get_clients(
    chains: List[Chain], timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
) -> Dict[str, ChainClient]:
    """Builds one independent client per chain, preserving order."""
    clients = dict()
    for chain in chains:
        clients[chain.name] = Web3ChainClient(chain=chain, timeout=timeout)
    return clients
