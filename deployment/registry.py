import json
import os
from collections import OrderedDict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from eth_typing import ChecksumAddress

from deployment.constants import ADDRESSES_FILENAME_PREFIX
from deployment.utils import _load_json

ChainId = int
ContractRole = str


ADDRESSES_JSON_FORMAT = {"indent": 2}


class DeploymentRecord(NamedTuple):
    """A contract deployed by this tooling, as confirmed by its receipt."""

    role: ContractRole
    contract_name: str
    chain_name: str
    chain_id: ChainId
    address: ChecksumAddress
    tx_hash: str
    block_number: int
    deployer: ChecksumAddress


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def addresses_filepath(output_dir: Path, run_date: Optional[date] = None) -> Path:
    """Returns the per-day addresses file, e.g. addresses2025-01-31.json (UTC date)"""
    run_date = run_date or utc_today()
    return Path(output_dir) / f"{ADDRESSES_FILENAME_PREFIX}{run_date.isoformat()}.json"


def write_addresses(
    records: List[DeploymentRecord], output_dir: Path, run_date: Optional[date] = None
) -> Path:
    """
    Writes the role -> address mapping of a complete run.
    An existing file for the same day is replaced, never merged.
    """
    if not records:
        raise ValueError("No deployment records provided.")

    roles = [record.role for record in records]
    if len(set(roles)) != len(roles):
        raise ValueError(f"Duplicate contract roles in deployment records: {roles}")

    data = OrderedDict((record.role, record.address) for record in records)

    filepath = addresses_filepath(output_dir=output_dir, run_date=run_date)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.exists():
        print(f"Overwriting existing addresses file at {filepath}.")

    # write aside and swap in so a failed write never leaves a partial file
    temp_filepath = filepath.with_suffix(".temp.json")
    with open(temp_filepath, "w") as file:
        json.dump(data, file, **ADDRESSES_JSON_FORMAT)
    os.replace(temp_filepath, filepath)

    return filepath


def read_addresses(filepath: Path) -> Dict[ContractRole, ChecksumAddress]:
    data = _load_json(filepath)
    return OrderedDict((role, address) for role, address in data.items())
