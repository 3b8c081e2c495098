import json
from pathlib import Path
from typing import Dict, List

import yaml

from deployment.constants import CONSTRUCTOR_PARAMS_DIR, CONTRACT_ROLES, SUPPORTED_DOMAINS
from deployment.errors import ConfigurationError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def params_filepath_from_domain(domain: str) -> Path:
    if domain not in SUPPORTED_DOMAINS:
        raise ConfigurationError(f"Unsupported domain '{domain}'")

    p = CONSTRUCTOR_PARAMS_DIR / f"{domain}.yml"
    if not p.exists():
        raise ConfigurationError(f"No deployment parameters found for domain '{domain}'")

    return p


def get_contract_roles(config: Dict) -> List[str]:
    """Returns the contract roles in the order they are declared in the params file."""
    roles = list()
    for contract_info in config["contracts"]:
        if not isinstance(contract_info, dict) or len(contract_info) != 1:
            raise ConfigurationError("Malformed deployment parameters YAML.")
        roles.extend(list(contract_info.keys()))
    return roles


def get_chain_names(config: Dict) -> List[str]:
    """Returns the distinct chains targeted by the params file, in declaration order."""
    chain_names = list()
    for contract_info in config["contracts"]:
        contract_data = list(contract_info.values())[0]
        chain_name = contract_data["chain"]
        if chain_name not in chain_names:
            chain_names.append(chain_name)
    return chain_names


def validate_config(config: Dict) -> None:
    """Checks the overall shape of a deployment params file."""
    print("Validating parameters YAML...")

    if not isinstance(config, dict):
        raise ConfigurationError("Deployment params file is empty or malformed.")

    deployment = config.get("deployment")
    if not deployment:
        raise ConfigurationError("deployment is not set in params file.")

    contracts = config.get("contracts")
    if not contracts:
        raise ConfigurationError("Deployment params file missing 'contracts' field.")

    roles = get_contract_roles(config)
    if len(set(roles)) != len(roles):
        raise ConfigurationError("Contract roles must be unique in params file.")
    unknown = [role for role in roles if role not in CONTRACT_ROLES]
    if unknown:
        raise ConfigurationError(f"Unknown contract role(s) in params file: {', '.join(unknown)}")

    for contract_info in contracts:
        role, contract_data = list(contract_info.items())[0]
        if not isinstance(contract_data, dict):
            raise ConfigurationError(f"Malformed deployment parameters for {role}.")
        for key in ("chain", "artifact"):
            if not contract_data.get(key):
                raise ConfigurationError(f"'{key}' is not set for {role} in params file.")
