"""
registry.py

Resolve the deployed contracts of the target network to their addresses and
ABI decoders.

Deployments are read from a build directory. Two layouts are understood:

- Truffle artifacts: ``<Name>.json`` with ``abi`` and
  ``networks[<network_id>].address``.
- ABI/address pairs: ``<Name>_abi.json`` next to ``<Name>_address.txt``,
  as exported by the Hardhat deploy scripts.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception

from .errors import DecodeError, DeploymentNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedCall:
    function_name: str
    arg_names: Tuple[str, ...]
    args: Tuple[Any, ...]


class AbiDecoder:
    """Decode transaction calldata against one contract ABI."""

    def __init__(self, w3: Web3, abi: List[Dict[str, Any]]):
        self.abi = abi
        self._contract = w3.eth.contract(abi=abi)

    def decode(self, calldata: Union[bytes, str]) -> DecodedCall:
        try:
            func, params = self._contract.decode_function_input(HexBytes(calldata))
        except (ValueError, DecodingError, Web3Exception) as e:
            raise DecodeError(f"Cannot decode calldata: {e}") from e

        # params keeps the ABI input order
        return DecodedCall(
            function_name=func.fn_name,
            arg_names=tuple(params.keys()),
            args=tuple(params.values()),
        )


@dataclass(frozen=True)
class ContractEntry:
    address: str
    name: str
    decoder: AbiDecoder


def normalize_address(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    return Web3.to_checksum_address(address)


class ContractRegistry(Mapping):
    """Read-only mapping of checksum address -> ContractEntry."""

    def __init__(self, entries: Iterable[ContractEntry] = ()):
        by_address = {normalize_address(e.address): e for e in entries}
        self._entries = MappingProxyType(by_address)

    def __getitem__(self, address: str) -> ContractEntry:
        return self._entries[normalize_address(address)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, address: Optional[str]) -> Optional[ContractEntry]:
        key = normalize_address(address)
        if key is None:
            return None
        return self._entries.get(key)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DeploymentNotFoundError(f"Cannot read artifact {path}: {e}") from e


def _read_address(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, ValueError) as e:
        raise DeploymentNotFoundError(f"Cannot read address file {path}: {e}") from e


def _checksum(name: str, address: Any, source: Path) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise DeploymentNotFoundError(
            f"{name}: invalid address {address!r} in {source}"
        ) from e


def load_deployment(name: str, build_dir: Path, network_id: str) -> Tuple[str, str, List[Dict[str, Any]]]:
    """Return (contract name, checksum address, abi) for one contract."""
    build_dir = Path(build_dir)

    artifact_path = build_dir / f"{name}.json"
    if artifact_path.exists():
        artifact = _read_json(artifact_path)
        if not isinstance(artifact, dict):
            raise DeploymentNotFoundError(f"Artifact {artifact_path} is not a JSON object")

        abi = artifact.get("abi")
        if not abi or not isinstance(abi, list):
            raise DeploymentNotFoundError(f"Artifact {artifact_path} has no ABI")

        networks = artifact.get("networks") or {}
        deployment = networks.get(str(network_id)) if isinstance(networks, dict) else None
        address = deployment.get("address") if isinstance(deployment, dict) else None
        if not address:
            raise DeploymentNotFoundError(
                f"{name} has not been deployed to network {network_id}"
            )
        return artifact.get("contractName") or name, _checksum(name, address, artifact_path), abi

    abi_path = build_dir / f"{name}_abi.json"
    address_path = build_dir / f"{name}_address.txt"
    if abi_path.exists() and address_path.exists():
        abi = _read_json(abi_path)
        # Hardhat exports either the bare ABI list or the whole artifact
        if isinstance(abi, dict):
            abi = abi.get("abi")
        if not abi or not isinstance(abi, list):
            raise DeploymentNotFoundError(f"ABI file {abi_path} is empty")

        address = _read_address(address_path)
        if not address:
            raise DeploymentNotFoundError(f"Address file {address_path} is empty")
        return name, _checksum(name, address, address_path), abi

    raise DeploymentNotFoundError(f"No deployment artifact for {name} in {build_dir}")


def build_registry(
    w3: Web3,
    contract_names: Iterable[str],
    build_dir: Path,
    network_id: str,
) -> ContractRegistry:
    entries: List[ContractEntry] = []
    for name in contract_names:
        contract_name, address, abi = load_deployment(name, build_dir, network_id)
        try:
            decoder = AbiDecoder(w3, abi)
        except (ValueError, TypeError, Web3Exception) as e:
            raise DeploymentNotFoundError(f"{contract_name}: unusable ABI: {e}") from e
        entries.append(ContractEntry(address=address, name=contract_name, decoder=decoder))
        logger.debug("Loaded %s at %s", contract_name, address)

    registry = ContractRegistry(entries)
    logger.info("Registry holds %d contracts (network %s)", len(registry), network_id)
    return registry
