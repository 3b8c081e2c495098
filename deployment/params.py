import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import date
from pathlib import Path
from typing import Any, List, NamedTuple

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from eth_utils.abi import collapse_if_tuple
from web3 import Web3

from deployment.artifacts import ContractArtifact, load_artifact
from deployment.chains import ChainClient
from deployment.confirm import _confirm_resolution, _continue
from deployment.constants import ARTIFACTS_DIR, OUTPUT_DIR
from deployment.environment import DeploymentEnvironment
from deployment.errors import ConfigurationError, DeploymentAddressMissing
from deployment.networks import Chain
from deployment.registry import DeploymentRecord, write_addresses
from deployment.sync import SynchronizedProof
from deployment.utils import _load_yaml, validate_config

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_CHAIN_KEY = "chain"
CONTRACT_ARTIFACT_KEY = "artifact"

w3 = Web3()


class VariableContext:
    def __init__(
        self,
        contract_role: str,
        environment: DeploymentEnvironment,
        deployer_address: str,
        constants: typing.Dict[str, Any] = None,
    ):
        self.contract_role = contract_role
        self.environment = environment
        self.deployer_address = deployer_address
        self.constants = constants or dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.address = context.deployer_address

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        return self.address


class EnvironmentAddress(Variable):
    """Addresses supplied through the environment, e.g. $delegate or $treasury."""

    ADDRESSES = ("delegate", "treasury")

    def __init__(self, name: str, context: VariableContext):
        self.name = name
        self.address = getattr(context.environment, name)
        if not self.address:
            raise ConfigurationError(
                f"${name} is used by {context.contract_role} but no {name} address is configured."
            )

    @classmethod
    def is_environment_address(cls, value: str) -> bool:
        return value in cls.ADDRESSES

    def resolve(self) -> Any:
        return self.address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise ConfigurationError(f"Constant '{constant_name}' not found in deployment file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _resolve_params(parameters: OrderedDict) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value)

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable.strip(Variable.VARIABLE_PREFIX)
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif EnvironmentAddress.is_environment_address(variable):
        return EnvironmentAddress(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        raise ConfigurationError(
            f"Variable '${variable}' used by {context.contract_role} is not resolvable."
        )


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: OrderedDict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


def _normalize_value(abi_type: str, value: Any) -> Any:
    """Checksums address values so that lower-case addresses in YAML are accepted."""
    if abi_type == "address" and isinstance(value, str):
        try:
            return to_checksum_address(value)
        except ValueError:
            return value
    if abi_type == "address[]" and isinstance(value, list):
        return [_normalize_value("address", v) for v in value]
    return value


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[typing.Dict[str, Any]],
    resolved_parameters: OrderedDict,
) -> OrderedDict:
    """
    Validates the constructor parameters against the constructor ABI.
    Returns the parameters with address values checksummed.
    """
    if len(resolved_parameters) != len(abi_inputs):
        raise ConstructorParameters.Invalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )

    normalized_parameters = OrderedDict()
    codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
    for position, (abi_input, resolved_input) in codex:
        name, value = resolved_input
        # validate name
        if abi_input.get("name") != name:
            raise ConstructorParameters.Invalid(
                f"{contract_name} constructor parameter '{name}' at position {position} does not "
                f"match the expected ABI name '{abi_input.get('name')}'."
            )

        # validate value type
        abi_type = collapse_if_tuple(abi_input)
        value = _normalize_value(abi_type, value)
        if not w3.is_encodable(abi_type, value):
            raise ConstructorParameters.Invalid(
                f"Constructor param name '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_type}'"
            )
        normalized_parameters[name] = value

    return normalized_parameters


class ConstructorParameters:
    """Represents the constructor parameters for a set of contracts, keyed by role."""

    class Invalid(ConfigurationError):
        """Raised when the constructor parameters are invalid"""

    def __init__(self, parameters: OrderedDict):
        self.parameters = parameters

    @classmethod
    def from_config(
        cls, config: typing.Dict, environment: DeploymentEnvironment, deployer_address: str
    ) -> "ConstructorParameters":
        """Processes the constructor parameters of every contract in a params file."""
        print("Processing contract constructor parameters...")
        contracts_config = OrderedDict()
        constants = config.get("constants")
        for contract_info in config["contracts"]:
            contract_role = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_role]
            raw_values = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or OrderedDict()
            if not isinstance(raw_values, dict):
                raise cls.Invalid(f"Malformed constructor parameter config for {contract_role}.")

            contracts_config[contract_role] = _process_raw_values(
                OrderedDict(raw_values),
                VariableContext(
                    contract_role=contract_role,
                    environment=environment,
                    deployer_address=deployer_address,
                    constants=constants,
                ),
            )

        return cls(parameters=contracts_config)

    def resolve(self, contract_role: str) -> OrderedDict:
        """Resolves the constructor parameters for a single contract."""
        resolved_params = _resolve_params(self.parameters[contract_role])
        return resolved_params


class DeploymentSpec(NamedTuple):
    """A contract to deploy: where, what, and with which constructor arguments."""

    role: str
    chain: Chain
    artifact: ContractArtifact
    params: OrderedDict

    @property
    def args(self) -> List[Any]:
        return list(self.params.values())


class Deployer:
    """
    Represents the deploying account plus
    deployment parameters for the main/assist contract pair, plus validated/annotated execution.
    Everything is validated on construction, before any transaction is sent.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        environment: DeploymentEnvironment,
        clients: typing.Mapping[str, ChainClient],
        artifacts_dir: Path = ARTIFACTS_DIR,
        output_dir: Path = OUTPUT_DIR,
        autosign: bool = False,
    ):
        validate_config(config=config)
        self.path = path
        self.config = config
        self.clients = clients
        self.artifacts_dir = Path(artifacts_dir)
        self.output_dir = Path(output_dir)
        self.account: LocalAccount = environment.get_account()
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self.autosign = autosign

        self.constructor_parameters = ConstructorParameters.from_config(
            config, environment=environment, deployer_address=self.account.address
        )
        self.targets = self._get_targets()
        self._print_deployment_info()

        if not self.autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath, *args, **kwargs)

    def _get_targets(self) -> List[DeploymentSpec]:
        targets = list()
        for contract_info in self.config["contracts"]:
            role = list(contract_info.keys())[0]
            contract_data = contract_info[role]
            chain_name = contract_data[CONTRACT_CHAIN_KEY]
            client = self.clients.get(chain_name)
            if client is None:
                raise ConfigurationError(f"No client available for {role} chain '{chain_name}'.")

            artifact = load_artifact(self.artifacts_dir, contract_data[CONTRACT_ARTIFACT_KEY])
            params = _validate_constructor_abi_inputs(
                contract_name=artifact.name,
                abi_inputs=artifact.constructor_inputs,
                resolved_parameters=self.constructor_parameters.resolve(role),
            )
            targets.append(
                DeploymentSpec(role=role, chain=client.chain, artifact=artifact, params=params)
            )
        return targets

    @property
    def chain_names(self) -> List[str]:
        names = list()
        for target in self.targets:
            if target.chain.name not in names:
                names.append(target.chain.name)
        return names

    def _check_proof(self, proof: SynchronizedProof) -> None:
        if not isinstance(proof, SynchronizedProof):
            raise ConfigurationError("Deployment requires a successful nonce synchronization.")
        unsynchronized = [name for name in self.chain_names if not proof.covers(name)]
        if unsynchronized:
            raise ConfigurationError(
                f"Nonces were not synchronized for: {', '.join(unsynchronized)}."
            )

    def deploy(self, proof: SynchronizedProof) -> List[DeploymentRecord]:
        """Deploys every target in order; the first failure aborts the run."""
        self._check_proof(proof)
        records = list()
        for target in self.targets:
            record = self._deploy_target(target)
            records.append(record)
        return records

    def _deploy_target(self, target: DeploymentSpec) -> DeploymentRecord:
        contract_name = target.artifact.name
        chain_name = target.chain.name
        if not self.autosign:
            _confirm_resolution(target.params, contract_name, chain_name)

        client = self.clients[chain_name]
        print(f"Deploying {contract_name} contract to {chain_name}...")
        tx_hash = client.deploy_contract(self.account, target.artifact, target.args)
        tx_hex = Web3.to_hex(tx_hash)
        print(f"{contract_name} submitted on {chain_name}. Transaction hash: {tx_hex}")

        print(f"Waiting for {chain_name} deployment confirmation...")
        receipt = client.wait_for_receipt(tx_hash)
        contract_address = receipt.get("contractAddress")
        if not contract_address:
            raise DeploymentAddressMissing(
                f"Receipt for {contract_name} on {chain_name} ({tx_hex}) has no contract address."
            )
        contract_address = to_checksum_address(contract_address)
        print(f"{contract_name} deployed to: {contract_address}")

        return DeploymentRecord(
            role=target.role,
            contract_name=contract_name,
            chain_name=chain_name,
            chain_id=target.chain.chain_id,
            address=contract_address,
            tx_hash=tx_hex,
            block_number=int(receipt.get("blockNumber") or 0),
            deployer=self.account.address,
        )

    def finalize(self, records: List[DeploymentRecord], run_date: date = None) -> Path:
        """Persists the addresses of a complete run and prints a summary."""
        filepath = write_addresses(records=records, output_dir=self.output_dir, run_date=run_date)
        print(f"(i) Addresses written to {filepath}!")

        print("\nDeployment Summary:")
        for record in records:
            print(f"{record.role.title()} Contract ({record.chain_name}): {record.address}")
        print(
            "\nTo set up cross-chain functionality, "
            "these contracts should be linked through LayerZero."
        )
        return filepath

    def _print_deployment_info(self):
        print(
            f"Account: {self.account.address}",
            f"Config: {self.path}",
            f"Artifacts: {self.artifacts_dir}",
            f"Output: {self.output_dir}",
            *(f"Target: {t.role} -> {t.artifact.name} on {t.chain}" for t in self.targets),
            sep="\n",
        )
