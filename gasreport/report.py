from __future__ import annotations

import csv
import json
import logging
import os
import statistics
import tempfile
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ReportWriteError

logger = logging.getLogger(__name__)

CALL_TYPE_DEPLOY = "deploy"
CALL_TYPE_CALL = "call"
UNKNOWN_CONTRACT = "UnknownContract"

CSV_COLUMNS = [
    "blockHeight",
    "transactionIndex",
    "txHash",
    "status",
    "from",
    "to",
    "contractAddress",
    "gasUsed",
    "callType",
    "contractName",
    "functionName",
    "argNames",
    "args",
]


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def compact_json(data: Any) -> str:
    """JSON without whitespace, bytes rendered as 0x hex."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=_json_default)


@dataclass(frozen=True)
class TransactionRecord:
    block_height: int
    transaction_index: int
    tx_hash: str
    status: Optional[int]
    from_address: str
    to_address: Optional[str]
    contract_address: Optional[str]
    gas_used: int
    call_type: str
    contract_name: str
    function_name: str = ""
    # None for rows that were not decoded
    arg_names: Optional[Tuple[str, ...]] = None
    args: Optional[Tuple[Any, ...]] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "blockHeight": self.block_height,
            "transactionIndex": self.transaction_index,
            "txHash": self.tx_hash,
            "status": "" if self.status is None else self.status,
            "from": self.from_address or "",
            "to": self.to_address or "",
            "contractAddress": self.contract_address or "",
            "gasUsed": self.gas_used,
            "callType": self.call_type,
            "contractName": self.contract_name,
            "functionName": self.function_name,
            "argNames": "" if self.arg_names is None else compact_json(list(self.arg_names)),
            "args": "" if self.args is None else compact_json(list(self.args)),
        }


def write_report(records: Sequence[TransactionRecord], path: Path) -> Path:
    """
    Write all records as CSV with a header row, replacing any file at path.

    Rows go to a temporary file in the same directory first, so a failed
    write leaves the previous report (or nothing) in place.
    """
    path = Path(path)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            newline="",
            encoding="utf-8",
            delete=False,
        ) as f:
            tmp_name = f.name
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for record in records:
                writer.writerow(record.to_row())
        os.replace(tmp_name, path)
    except (OSError, csv.Error) as e:
        if tmp_name and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise ReportWriteError(f"Cannot write report to {path}: {e}") from e

    logger.info("Wrote %d rows to %s", len(records), path)
    return path


def summarize(records: Sequence[TransactionRecord]) -> Dict[str, Any]:
    """
    Gas statistics over the whole report.

    Returns a dict with count, total, min, max, mean, median and
    ``by_function``: a list of (contract, function, tx count, total gas)
    sorted by total gas, highest first.
    """
    gas_list = [r.gas_used for r in records]
    if not gas_list:
        return {"count": 0, "total": 0, "by_function": []}

    totals: Dict[Tuple[str, str], List[int]] = defaultdict(lambda: [0, 0])
    for r in records:
        key = (r.contract_name, r.function_name or r.call_type)
        totals[key][0] += 1
        totals[key][1] += r.gas_used

    by_function = sorted(
        ((contract, fn, count, total) for (contract, fn), (count, total) in totals.items()),
        key=lambda row: row[3],
        reverse=True,
    )

    return {
        "count": len(gas_list),
        "total": sum(gas_list),
        "min": min(gas_list),
        "max": max(gas_list),
        "mean": statistics.mean(gas_list),
        "median": statistics.median(gas_list),
        "by_function": by_function,
    }
