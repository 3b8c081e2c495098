"""
Aligns the deploying account's nonce across several chains.

Contract creation addresses are derived from (deployer, nonce), so deploying
the main and assist contracts from equal nonces on both chains keeps their
deployments in lockstep. Lagging chains are topped up with zero-value
self-transfers ("fillers") until every chain reaches the highest nonce.
"""

from collections import OrderedDict
from typing import Dict, FrozenSet, Mapping

from eth_account.signers.local import LocalAccount
from web3 import Web3

from deployment.chains import ChainClient
from deployment.confirm import _confirm_fillers
from deployment.errors import InvariantViolation

NonceSnapshot = Dict[str, int]

_PROOF_TOKEN = object()


class SynchronizedProof:
    """
    Evidence that the account nonce is equal on every covered chain.
    Only `synchronize` hands these out; deployments require one.
    """

    def __init__(self, chain_names: FrozenSet[str], target_nonce: int, _token: object = None):
        if _token is not _PROOF_TOKEN:
            raise TypeError("SynchronizedProof can only be obtained from synchronize()")
        self.chain_names = frozenset(chain_names)
        self.target_nonce = target_nonce

    def covers(self, chain_name: str) -> bool:
        return chain_name in self.chain_names

    def __repr__(self) -> str:
        chains = ", ".join(sorted(self.chain_names))
        return f"SynchronizedProof(chains=[{chains}], nonce={self.target_nonce})"


def take_snapshot(clients: Mapping[str, ChainClient], address: str) -> NonceSnapshot:
    """Reads the current nonce on every chain, one chain after the other."""
    snapshot = OrderedDict()
    for name, client in clients.items():
        snapshot[name] = client.get_nonce(address)
        print(f"Current nonce on {name}: {snapshot[name]}")
    return snapshot


def get_target_nonce(snapshot: NonceSnapshot) -> int:
    if not snapshot:
        raise ValueError("Cannot compute a target nonce without any chains.")
    return max(snapshot.values())


def plan_fillers(snapshot: NonceSnapshot) -> Dict[str, int]:
    """Returns the number of filler transactions each chain needs to reach the target nonce."""
    target_nonce = get_target_nonce(snapshot)
    return OrderedDict((name, target_nonce - nonce) for name, nonce in snapshot.items())


def _check_nonce(client: ChainClient, address: str, expected: int) -> None:
    observed = client.get_nonce(address)
    if observed < expected:
        raise InvariantViolation(
            f"Nonce on {client.name} went down from {expected} to {observed} "
            f"while synchronizing; refusing to continue."
        )


def _sync_chain(
    client: ChainClient, account: LocalAccount, current_nonce: int, target_nonce: int
) -> None:
    count = target_nonce - current_nonce
    if count <= 0:
        return

    print(f"Synchronizing nonce on {client.name}. Need to send {count} transaction(s)...")
    tracked_nonce = current_nonce
    for i in range(count):
        # transaction k+1 is only signed once transaction k has a receipt
        _check_nonce(client, account.address, tracked_nonce)
        print(f"Sending transaction {i + 1}/{count}...")
        tx_hash = client.send_filler(account)
        client.wait_for_receipt(tx_hash)
        tracked_nonce += 1
        print(f"Transaction confirmed: {Web3.to_hex(tx_hash)}")

    print(f"{client.name} nonce synchronized successfully!")


def synchronize(
    clients: Mapping[str, ChainClient], account: LocalAccount, interactive: bool = False
) -> SynchronizedProof:
    """
    Brings the account nonce on every chain up to the highest nonce found.

    Chains are handled in the mapping's order. The target is computed once
    from the initial snapshot and is not re-validated before each send.
    Any failure propagates immediately; fillers that were already confirmed
    stay on chain.
    """
    print(f"Account: {account.address}")
    snapshot = take_snapshot(clients, account.address)
    target_nonce = get_target_nonce(snapshot)
    print(f"Target nonce for all chains: {target_nonce}")

    plan = plan_fillers(snapshot)
    lagging = OrderedDict((name, count) for name, count in plan.items() if count > 0)
    if not lagging:
        print("Nonces are already synchronized! No action needed.")
    else:
        for name, count in lagging.items():
            print(f"{name} nonce needs to be increased by {count}")
        if interactive:
            _confirm_fillers(lagging)
        for name in lagging:
            _sync_chain(clients[name], account, snapshot[name], target_nonce)

    return SynchronizedProof(
        chain_names=frozenset(clients), target_nonce=target_nonce, _token=_PROOF_TOKEN
    )
