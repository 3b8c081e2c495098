from unittest.mock import Mock

import pytest
import requests
from eth_account import Account
from hexbytes import HexBytes
from web3.exceptions import TimeExhausted, Web3RPCError

from deployment.chains import Web3ChainClient, get_clients
from deployment.errors import (
    ConfirmationTimeout,
    NetworkError,
    TransactionFailedError,
)
from tests.conftest import BSC, DEPLOYER_ADDRESS, ETH

TX_HASH = HexBytes("0x" + "11" * 32)


@pytest.fixture
def w3():
    w3 = Mock()
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.send_raw_transaction.return_value = TX_HASH
    return w3


@pytest.fixture
def client(w3):
    return Web3ChainClient(chain=BSC, timeout=10, w3=w3)


def test_get_nonce(client, w3):
    assert 7 == client.get_nonce(DEPLOYER_ADDRESS)
    w3.eth.get_transaction_count.assert_called_once_with(DEPLOYER_ADDRESS, "latest")


def test_get_nonce_unreachable(client, w3):
    w3.eth.get_transaction_count.side_effect = requests.ConnectionError("refused")
    with pytest.raises(NetworkError, match="bsc"):
        client.get_nonce(DEPLOYER_ADDRESS)


@pytest.mark.parametrize("malformed", [None, "7", -1, True])
def test_get_nonce_malformed(client, w3, malformed):
    w3.eth.get_transaction_count.return_value = malformed
    with pytest.raises(NetworkError, match="malformed"):
        client.get_nonce(DEPLOYER_ADDRESS)


def test_send_filler(client, w3):
    account = Account.create()
    w3.eth.get_transaction_count.return_value = 3

    tx_hash = client.send_filler(account)

    assert TX_HASH == tx_hash
    w3.eth.get_transaction_count.assert_called_once_with(account.address, "pending")
    raw_transaction = w3.eth.send_raw_transaction.call_args[0][0]
    transaction = Account.recover_transaction(raw_transaction)
    assert account.address == transaction


def test_filler_uses_static_gas_settings(client, w3, monkeypatch):
    account = Account.create()
    signed_transactions = list()
    original_sign = type(account).sign_transaction

    def sign_transaction(self, transaction):
        signed_transactions.append(dict(transaction))
        return original_sign(self, transaction)

    monkeypatch.setattr(type(account), "sign_transaction", sign_transaction)
    client.send_filler(account)

    transaction = signed_transactions[0]
    assert account.address == transaction["to"]
    assert 0 == transaction["value"]
    assert BSC.gas == transaction["gas"]
    assert BSC.gas_price == transaction["gasPrice"]
    assert BSC.chain_id == transaction["chainId"]
    assert 7 == transaction["nonce"]


def test_rejected_transaction(client, w3):
    w3.eth.send_raw_transaction.side_effect = Web3RPCError("nonce too low")
    with pytest.raises(TransactionFailedError, match="rejected"):
        client.send_filler(Account.create())


def test_wait_for_receipt(client, w3):
    receipt = {"status": 1, "blockNumber": 10, "contractAddress": None}
    w3.eth.wait_for_transaction_receipt.return_value = receipt

    assert receipt == client.wait_for_receipt(TX_HASH)
    w3.eth.wait_for_transaction_receipt.assert_called_once()
    assert 10 == w3.eth.wait_for_transaction_receipt.call_args.kwargs["timeout"]


def test_reverted_receipt(client, w3):
    w3.eth.wait_for_transaction_receipt.return_value = {"status": 0}
    with pytest.raises(TransactionFailedError, match="reverted"):
        client.wait_for_receipt(TX_HASH)


def test_confirmation_timeout(client, w3):
    w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("too slow")
    with pytest.raises(ConfirmationTimeout) as exc_info:
        client.wait_for_receipt(TX_HASH)
    assert "0x" + "11" * 32 == exc_info.value.tx_hash


def test_get_clients_are_independent():
    clients = get_clients([BSC, ETH], timeout=5)

    assert ["bsc", "eth"] == list(clients)
    assert clients["bsc"].w3 is not clients["eth"].w3
    assert 5 == clients["eth"].timeout
    assert BSC == clients["bsc"].chain
