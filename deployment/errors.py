from typing import Optional


class DeploymentError(Exception):
    """Base class for every failure surfaced by the deployment tooling."""


class ConfigurationError(DeploymentError, ValueError):
    """Required input is missing or malformed; raised before any network call."""


class NetworkError(DeploymentError):
    """An RPC endpoint is unreachable or answered with malformed data."""

    def __init__(self, chain_name: str, message: str):
        self.chain_name = chain_name
        super().__init__(f"[{chain_name}] {message}")


class TransactionFailedError(DeploymentError):
    """A submitted transaction reverted or was rejected."""

    def __init__(self, chain_name: str, message: str, tx_hash: Optional[str] = None):
        self.chain_name = chain_name
        self.tx_hash = tx_hash
        subject = f"transaction {tx_hash}" if tx_hash else "transaction"
        super().__init__(f"[{chain_name}] {subject} {message}")


class ConfirmationTimeout(TransactionFailedError):
    """No receipt showed up within the configured timeout."""


class DeploymentAddressMissing(DeploymentError):
    """A contract creation receipt did not carry a contract address."""


class InvariantViolation(DeploymentError):
    """A chain's account nonce went down while it was being synchronized."""
