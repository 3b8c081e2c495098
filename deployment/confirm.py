from collections import OrderedDict
from typing import Mapping

from deployment.constants import ZERO_ADDRESS


def _confirm_deployment(contract_name: str, chain_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    answer = input(f"Deploy {contract_name} to {chain_name} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        exit(-1)


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        exit(-1)


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        exit(-1)


def _confirm_fillers(plan: Mapping[str, int]) -> None:
    """Asks the user to confirm the filler transactions about to be sent."""
    print("\nFiller transactions (zero-value self-transfers) to send:")
    for chain_name, count in plan.items():
        print(f"\t{chain_name}: {count}")
    answer = input("Send filler transactions Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting nonce synchronization!")
        exit(-1)


def _confirm_resolution(resolved_params: OrderedDict, contract_name: str, chain_name: str) -> None:
    """Asks the user to confirm the resolved constructor parameters for a single contract."""
    if len(resolved_params) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _confirm_deployment(contract_name, chain_name)
        return

    print(f"\nConstructor parameters for {contract_name} on {chain_name}")
    contains_zero_address = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = resolved_value == ZERO_ADDRESS
    _confirm_deployment(contract_name, chain_name)
    if contains_zero_address:
        _confirm_zero_address()
