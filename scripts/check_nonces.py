#!/usr/bin/python3

import os

import click
from dotenv import find_dotenv, load_dotenv

from deployment.constants import API_KEY_ENVVAR
from deployment.environment import DeploymentEnvironment
from deployment.options import address_option, domain_option, params_option
from scripts.utils import build_clients, exit_on_error, load_params, report_plan


@click.command()
@domain_option
@params_option
@address_option
@exit_on_error
def cli(domain, params_filepath, address):
    """Read-only: shows an account's nonce on each chain of the domain."""
    load_dotenv(find_dotenv(usecwd=True))
    api_key = os.environ.get(API_KEY_ENVVAR)
    if address is None:
        environment = DeploymentEnvironment.from_env(require_addresses=False, dotenv=False)
        address = environment.get_account().address
        api_key = environment.api_key

    config, _ = load_params(domain=domain, params_filepath=params_filepath)
    clients = build_clients(config=config, api_key=api_key, timeout=1)
    report_plan(clients=clients, address=address)


if __name__ == "__main__":
    cli()
