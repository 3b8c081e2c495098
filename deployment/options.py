from pathlib import Path

import click

from deployment.constants import (
    ARTIFACTS_DIR,
    DEFAULT_CONFIRMATION_TIMEOUT,
    OUTPUT_DIR,
    SUPPORTED_DOMAINS,
)
from deployment.types import ChecksumAddress, MinInt

domain_option = click.option(
    "--domain",
    "-d",
    help="Deployment domain; selects the chain pair and constructor parameters.",
    type=click.Choice(SUPPORTED_DOMAINS),
    required=True,
)

params_option = click.option(
    "--params",
    "-p",
    "params_filepath",
    help="Deployment parameters YAML; overrides the domain's default file.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
    default=None,
)

timeout_option = click.option(
    "--timeout",
    "-t",
    help="Seconds to wait for each transaction receipt.",
    type=MinInt(1),
    default=DEFAULT_CONFIRMATION_TIMEOUT,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign and send transactions without asking for confirmation.",
    is_flag=True,
    default=False,
)

dry_run_option = click.option(
    "--dry-run",
    help="Only report nonces and the filler transactions that would be sent.",
    is_flag=True,
    default=False,
)

artifacts_dir_option = click.option(
    "--artifacts-dir",
    help="Directory holding the compiled hardhat artifacts.",
    type=click.Path(file_okay=False, path_type=Path),
    default=ARTIFACTS_DIR,
    show_default=True,
)

output_dir_option = click.option(
    "--output-dir",
    "-o",
    help="Directory the dated addresses file is written to.",
    type=click.Path(file_okay=False, path_type=Path),
    default=OUTPUT_DIR,
    show_default=True,
)

address_option = click.option(
    "--address",
    "-a",
    help="Account to inspect; defaults to the account derived from PRIVATE_KEY.",
    type=ChecksumAddress(),
    required=False,
    default=None,
)
