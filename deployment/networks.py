from pathlib import Path
from typing import Dict, NamedTuple, Optional

from deployment.constants import API_KEY_ENVVAR, NETWORKS_FILEPATH
from deployment.errors import ConfigurationError
from deployment.utils import _load_yaml

API_KEY_PLACEHOLDER = "${" + API_KEY_ENVVAR + "}"

REQUIRED_FIELDS = ("url", "chain_id", "gas", "gas_price")


class Chain(NamedTuple):
    """Static settings of a single chain."""

    name: str
    chain_id: int
    url: str
    gas: int
    gas_price: int
    poa: bool = False

    def __str__(self) -> str:
        return f"{self.name} (chain id {self.chain_id})"


def _resolve_url(name: str, settings: Dict, api_key: Optional[str]) -> str:
    url = settings["url"]
    if API_KEY_PLACEHOLDER not in url:
        return url
    if api_key:
        return url.replace(API_KEY_PLACEHOLDER, api_key)
    fallback = settings.get("url_fallback")
    if not fallback:
        raise ConfigurationError(f"{API_KEY_ENVVAR} is required for network '{name}'.")
    return fallback


def _parse_chain(name: str, settings: Dict, api_key: Optional[str]) -> Chain:
    if not isinstance(settings, dict):
        raise ConfigurationError(f"Malformed settings for network '{name}'.")

    missing = [field for field in REQUIRED_FIELDS if settings.get(field) is None]
    if missing:
        raise ConfigurationError(f"Network '{name}' is missing {', '.join(missing)}.")

    try:
        chain_id = int(settings["chain_id"])
        gas = int(settings["gas"])
        gas_price = int(settings["gas_price"])
    except (TypeError, ValueError):
        raise ConfigurationError(f"Network '{name}' has non-integer gas or chain_id settings.")

    if gas <= 0 or gas_price <= 0:
        raise ConfigurationError(f"Network '{name}' must have a positive gas and gas_price.")

    return Chain(
        name=name,
        chain_id=chain_id,
        url=_resolve_url(name, settings, api_key),
        gas=gas,
        gas_price=gas_price,
        poa=bool(settings.get("poa", False)),
    )


def load_chains(
    filepath: Path = NETWORKS_FILEPATH, api_key: Optional[str] = None
) -> Dict[str, Chain]:
    """Loads every chain declared in a networks YAML file."""
    config = _load_yaml(filepath) or dict()
    networks = config.get("networks")
    if not networks:
        raise ConfigurationError(f"No networks declared in {filepath}.")

    chains = dict()
    for name, settings in networks.items():
        chains[name] = _parse_chain(name, settings, api_key)
    return chains


def get_chain(chains: Dict[str, Chain], name: str) -> Chain:
    try:
        return chains[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown network '{name}'; expected one of {', '.join(sorted(chains))}."
        )
