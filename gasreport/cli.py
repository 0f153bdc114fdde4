"""
cli.py

Walk every block of the node, decode calls into the known contracts and
write the per-transaction gas report to CSV.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import BUILD_DIR, CONTRACT_NAMES, NETWORK_ID, OUTPUT_PATH, RPC_URL, parse_contract_names
from .errors import GasReportError
from .eth_client import ChainReader, connect
from .registry import build_registry
from .report import TransactionRecord, summarize, write_report
from .walker import collect_records

logger = logging.getLogger("gasreport")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Write a per-transaction gas report for every block of the node."
    )
    parser.add_argument("--rpc-url", default=RPC_URL, help="JSON-RPC endpoint of the node.")
    parser.add_argument(
        "--build-dir",
        type=Path,
        default=BUILD_DIR,
        help="Directory holding the deployment artifacts.",
    )
    parser.add_argument(
        "--network-id",
        default=NETWORK_ID,
        help="Network id of the deployments (default: ask the node).",
    )
    parser.add_argument("--output", type=Path, default=OUTPUT_PATH, help="CSV file to write.")
    parser.add_argument(
        "--contracts",
        type=parse_contract_names,
        default=CONTRACT_NAMES,
        help="Comma separated contract names to decode against.",
    )
    parser.add_argument("--quiet", action="store_true", help="Do not print the gas summary.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def print_summary(summary: Dict[str, Any]) -> None:
    print("\n=== Gas Summary ===")
    print("Transactions:", summary["count"])
    if summary["count"]:
        print("Total:", summary["total"])
        print("Min:", summary["min"])
        print("Max:", summary["max"])
        print(f"Mean: {summary['mean']:.1f}")
        print("Median:", summary["median"])
        print("\n--- By function ---")
        for contract, fn, count, total in summary["by_function"]:
            print(f"{contract}.{fn}: {count} tx, {total} gas")
    print("===================")


def run(args: argparse.Namespace) -> List[TransactionRecord]:
    w3 = connect(args.rpc_url)
    reader = ChainReader(w3)

    height = reader.block_number()
    network_id = args.network_id or reader.network_id()
    logger.info("Chain height %d, network %s", height, network_id)

    registry = build_registry(w3, args.contracts, args.build_dir, network_id)
    records = collect_records(reader, registry, height)
    write_report(records, args.output)
    return records


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    try:
        records = run(args)
    except GasReportError as e:
        logger.error("%s", e)
        return 1

    print("[OK] Wrote:", args.output)
    if not args.quiet:
        print_summary(summarize(records))
    return 0


if __name__ == "__main__":
    sys.exit(main())
