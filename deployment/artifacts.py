from pathlib import Path
from typing import Any, Dict, List, NamedTuple

from hexbytes import HexBytes
from eth_typing import ABI

from deployment.errors import ConfigurationError
from deployment.utils import _load_json


class ContractArtifact(NamedTuple):
    """Compiled contract as produced by hardhat: name, ABI and creation bytecode."""

    name: str
    abi: ABI
    bytecode: HexBytes

    @property
    def constructor_inputs(self) -> List[Dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return list(entry.get("inputs", []))
        return []


def load_artifact(artifacts_dir: Path, artifact: str) -> ContractArtifact:
    """
    Loads a hardhat artifact, e.g. 'EPTCross_main.sol/EPTCrossMain.json'
    relative to the artifacts directory.
    """
    filepath = Path(artifacts_dir) / artifact
    if not filepath.exists():
        raise ConfigurationError(
            f"No contract artifact found at {filepath}. Compile the contracts first."
        )

    data = _load_json(filepath)
    abi = data.get("abi")
    if not isinstance(abi, list):
        raise ConfigurationError(f"Artifact {filepath} does not contain an ABI.")

    bytecode = data.get("bytecode") or ""
    if bytecode in ("", "0x"):
        raise ConfigurationError(
            f"Artifact {filepath} has no bytecode; "
            "abstract contracts and interfaces cannot be deployed."
        )

    try:
        bytecode = HexBytes(bytecode)
    except ValueError:
        raise ConfigurationError(f"Artifact {filepath} has malformed bytecode.")

    name = data.get("contractName") or filepath.stem
    return ContractArtifact(name=name, abi=abi, bytecode=bytecode)
