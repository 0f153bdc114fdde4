"""
walker.py

Walk the chain from block 1 to the head and turn every transaction into a
TransactionRecord.

A transaction is a deployment when its receipt carries a contractAddress,
otherwise it is a call and its calldata is decoded with the ABI of the
target contract. Targets missing from the registry still get a row, named
UnknownContract.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterator, List, Optional

from .errors import DecodeError, RpcError
from .eth_client import ChainReader, hex_str
from .registry import ContractRegistry, normalize_address
from .report import (
    CALL_TYPE_CALL,
    CALL_TYPE_DEPLOY,
    UNKNOWN_CONTRACT,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


def to_int(value: Any) -> int:
    """Accept ints as well as hex / decimal strings from the node."""
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def _require(data: Any, key: str, what: str) -> Any:
    try:
        return data[key]
    except KeyError as e:
        raise RpcError(f"{what} is missing '{key}'") from e


def _int_field(data: Any, key: str, what: str, required: bool = True) -> Optional[int]:
    value = _require(data, key, what) if required else data.get(key)
    if value is None and not required:
        return None
    try:
        return to_int(value)
    except (ValueError, TypeError) as e:
        raise RpcError(f"{what} has malformed '{key}': {value!r}") from e


def _address_field(data: Any, key: str, what: str) -> Optional[str]:
    value = data.get(key)
    try:
        return normalize_address(value)
    except (ValueError, TypeError) as e:
        raise RpcError(f"{what} has malformed '{key}': {value!r}") from e


def iter_blocks(reader: ChainReader, height: int) -> Iterator[Any]:
    """Yield blocks 1..height that contain at least one transaction."""
    for number in range(1, height + 1):
        block = reader.get_block(number)
        if not _require(block, "transactions", f"block {number}"):
            continue
        logger.debug("Block %d: %d transactions", number, len(block["transactions"]))
        yield block


def build_record(
    reader: ChainReader,
    registry: ContractRegistry,
    tx_hash: Any,
) -> TransactionRecord:
    receipt = reader.get_receipt(tx_hash)
    what = f"receipt {hex_str(tx_hash)}"

    contract_address = _address_field(receipt, "contractAddress", what)
    call_type = CALL_TYPE_DEPLOY if contract_address else CALL_TYPE_CALL

    function_name = ""
    arg_names = None
    args = None

    if call_type == CALL_TYPE_DEPLOY:
        entry = registry.lookup(contract_address)
        if entry is None:
            logger.warning("unknown deployed contract: %s", contract_address)
            contract_name = UNKNOWN_CONTRACT
        else:
            contract_name = entry.name
    else:
        tx = reader.get_transaction(tx_hash)
        target = _address_field(tx, "to", f"transaction {hex_str(tx_hash)}")
        entry = registry.lookup(target)
        if entry is None:
            logger.warning("unknown contract: %s", target)
            contract_name = UNKNOWN_CONTRACT
        else:
            contract_name = entry.name
            try:
                decoded = entry.decoder.decode(_require(tx, "input", f"transaction {hex_str(tx_hash)}"))
            except DecodeError as e:
                logger.warning("%s: call to %s in %s: %s", contract_name, target, hex_str(tx_hash), e)
            else:
                function_name = decoded.function_name
                arg_names = decoded.arg_names
                args = decoded.args

    return TransactionRecord(
        block_height=_int_field(receipt, "blockNumber", what),
        transaction_index=_int_field(receipt, "transactionIndex", what),
        tx_hash=hex_str(_require(receipt, "transactionHash", what)),
        status=_int_field(receipt, "status", what, required=False),
        from_address=_address_field(receipt, "from", what) or "",
        to_address=_address_field(receipt, "to", what),
        contract_address=contract_address,
        gas_used=_int_field(receipt, "gasUsed", what),
        call_type=call_type,
        contract_name=contract_name,
        function_name=function_name,
        arg_names=arg_names,
        args=args,
    )


def collect_records(
    reader: ChainReader,
    registry: ContractRegistry,
    height: Optional[int] = None,
) -> List[TransactionRecord]:
    """Scan blocks 1..height (chain head if not given) in chain order."""
    if height is None:
        height = reader.block_number()
    logger.info("Scanning blocks 1..%d", height)

    records: List[TransactionRecord] = []
    for block in iter_blocks(reader, height):
        for tx in block["transactions"]:
            # Blocks fetched with full_transactions carry dicts instead of hashes
            tx_hash = tx["hash"] if isinstance(tx, Mapping) else tx
            records.append(build_record(reader, registry, tx_hash))

    logger.info("Collected %d transactions", len(records))
    return records
