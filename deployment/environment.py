import os
from typing import Mapping, NamedTuple, Optional

from dotenv import find_dotenv, load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from deployment.constants import (
    API_KEY_ENVVAR,
    DELEGATE_ADDRESS_ENVVAR,
    PRIVATE_KEY_ENVVAR,
    TREASURY_ADDRESS_ENVVAR,
)
from deployment.errors import ConfigurationError


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"Missing {name} environment variable")
    return value


def _checksum_address(environ: Mapping[str, str], name: str) -> ChecksumAddress:
    value = _require(environ, name)
    try:
        return to_checksum_address(value)
    except ValueError:
        raise ConfigurationError(f"{name} is not a valid ethereum address")


class DeploymentEnvironment(NamedTuple):
    """
    Values supplied through the process environment (or a .env file).
    The private key is never printed; use `account` to get at the derived address.
    """

    private_key: str
    delegate: Optional[ChecksumAddress] = None
    treasury: Optional[ChecksumAddress] = None
    api_key: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"DeploymentEnvironment(delegate={self.delegate}, "
            f"treasury={self.treasury}, api_key={'set' if self.api_key else 'unset'})"
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        require_addresses: bool = True,
        dotenv: bool = True,
    ) -> "DeploymentEnvironment":
        """
        Reads and validates the deployment environment.
        Fails fast with ConfigurationError before anything touches the network.
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        private_key = _require(environ, PRIVATE_KEY_ENVVAR)
        delegate = treasury = None
        if require_addresses:
            delegate = _checksum_address(environ, DELEGATE_ADDRESS_ENVVAR)
            treasury = _checksum_address(environ, TREASURY_ADDRESS_ENVVAR)

        environment = cls(
            private_key=private_key,
            delegate=delegate,
            treasury=treasury,
            api_key=environ.get(API_KEY_ENVVAR) or None,
        )
        # surfaces a malformed key now rather than at signing time
        environment.get_account()
        return environment

    def get_account(self) -> LocalAccount:
        try:
            return Account.from_key(self.private_key)
        except Exception:
            # key parsing errors may echo the key itself
            raise ConfigurationError(f"{PRIVATE_KEY_ENVVAR} is not a valid private key") from None
