#!/usr/bin/python3

import click

from deployment.environment import DeploymentEnvironment
from deployment.options import (
    artifacts_dir_option,
    autosign_option,
    domain_option,
    output_dir_option,
    params_option,
    timeout_option,
)
from deployment.params import Deployer
from deployment.sync import synchronize
from scripts.utils import build_clients, exit_on_error, load_params


@click.command()
@domain_option
@params_option
@timeout_option
@autosign_option
@artifacts_dir_option
@output_dir_option
@exit_on_error
def cli(domain, params_filepath, timeout, autosign, artifacts_dir, output_dir):
    """
    Deploys EPTCrossMain and EPTCrossAssit to their chains.

    The deployer nonce is synchronized across both chains first, so both
    contracts are created from the same nonce. Addresses are written to
    addresses<YYYY-MM-DD>.json in the output directory.

    python -m scripts.deploy --domain testnet
    """

    # fails before anything touches the network
    environment = DeploymentEnvironment.from_env()
    click.echo(f"Delegate (Owner) Address: {environment.delegate}")
    click.echo(f"Treasury Address: {environment.treasury}")

    config, path = load_params(domain=domain, params_filepath=params_filepath)
    clients = build_clients(config=config, api_key=environment.api_key, timeout=timeout)

    deployer = Deployer(
        config=config,
        path=path,
        environment=environment,
        clients=clients,
        artifacts_dir=artifacts_dir,
        output_dir=output_dir,
        autosign=autosign,
    )
    click.echo(f"Deploying with account: {deployer.account.address}")

    proof = synchronize(clients=clients, account=deployer.account, interactive=not autosign)
    records = deployer.deploy(proof)
    deployer.finalize(records)


if __name__ == "__main__":
    cli()
