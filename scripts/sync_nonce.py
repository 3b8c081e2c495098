#!/usr/bin/python3

import click

from deployment.environment import DeploymentEnvironment
from deployment.options import (
    autosign_option,
    domain_option,
    dry_run_option,
    params_option,
    timeout_option,
)
from deployment.sync import synchronize
from scripts.utils import build_clients, exit_on_error, load_params, report_plan


@click.command()
@domain_option
@params_option
@timeout_option
@autosign_option
@dry_run_option
@exit_on_error
def cli(domain, params_filepath, timeout, autosign, dry_run):
    """
    Brings the deployer nonce on every chain of the domain up to the highest one
    by sending zero-value transactions to itself on the lagging chains.
    """
    environment = DeploymentEnvironment.from_env(require_addresses=False)
    account = environment.get_account()

    config, _ = load_params(domain=domain, params_filepath=params_filepath)
    clients = build_clients(config=config, api_key=environment.api_key, timeout=timeout)

    if dry_run:
        report_plan(clients=clients, address=account.address)
        return

    proof = synchronize(clients=clients, account=account, interactive=not autosign)
    click.secho(f"Nonce {proof.target_nonce} on {', '.join(clients)}", fg="green")


if __name__ == "__main__":
    cli()
