import functools
from pathlib import Path
from typing import Dict, Optional, Tuple

import click

from deployment.chains import ChainClient, get_clients
from deployment.errors import DeploymentError
from deployment.networks import get_chain, load_chains
from deployment.sync import plan_fillers, take_snapshot
from deployment.utils import (
    _load_yaml,
    get_chain_names,
    params_filepath_from_domain,
    validate_config,
)


def exit_on_error(func):
    """Reports deployment failures on stderr and exits with a non-zero status."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DeploymentError as e:
            click.secho(f"{type(e).__name__}: {e}", fg="red", err=True)
            raise SystemExit(1)

    return wrapper


def load_params(domain: str, params_filepath: Optional[Path] = None) -> Tuple[Dict, Path]:
    """Loads the deployment params for a domain, or from an explicit file."""
    filepath = params_filepath or params_filepath_from_domain(domain)
    config = _load_yaml(filepath)
    validate_config(config=config)
    return config, filepath


def build_clients(config: Dict, api_key: Optional[str], timeout: int) -> Dict[str, ChainClient]:
    """Builds one client per chain targeted by the params, in declaration order."""
    chains = load_chains(api_key=api_key)
    selected = [get_chain(chains, name) for name in get_chain_names(config)]
    return get_clients(chains=selected, timeout=timeout)


def report_plan(clients: Dict[str, ChainClient], address: str) -> Dict[str, int]:
    """Prints nonces and the filler transactions each chain would need, without sending any."""
    click.echo(f"Account: {address}")
    snapshot = take_snapshot(clients, address)
    plan = plan_fillers(snapshot)
    if not any(plan.values()):
        click.secho("Nonces are already synchronized! No action needed.", fg="green")
        return plan
    for chain_name, count in plan.items():
        if count:
            click.echo(f"{chain_name} would need {count} filler transaction(s)")
    return plan
