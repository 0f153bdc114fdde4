import logging
from typing import Any, Callable

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from .errors import RpcError

logger = logging.getLogger(__name__)

# Errors web3 raises for transport failures and RPC error responses
RPC_FAILURES = (requests.exceptions.RequestException, Web3Exception, ValueError, KeyError)


def hex_str(value: Any) -> str:
    """Render HexBytes / bytes / hex strings as a 0x-prefixed string."""
    if isinstance(value, str):
        return value
    return Web3.to_hex(value)


def connect(rpc_url: str) -> Web3:
    w3 = Web3(Web3.HTTPProvider(rpc_url))
    if not w3.is_connected():
        raise RpcError(f"Could not connect to RPC: {rpc_url}")
    logger.info("Connected to %s", rpc_url)
    return w3


class ChainReader:
    """Thin wrapper over ``w3.eth`` that turns transport failures into RpcError."""

    def __init__(self, w3: Web3):
        self.w3 = w3

    def _call(self, label: str, fn: Callable[[], Any]) -> Any:
        try:
            result = fn()
        except RPC_FAILURES as e:
            raise RpcError(f"{label} failed: {e}") from e
        if result is None:
            raise RpcError(f"{label} returned no data")
        return result

    def block_number(self) -> int:
        return int(self._call("eth_blockNumber", lambda: self.w3.eth.block_number))

    def network_id(self) -> str:
        return str(self._call("net_version", lambda: self.w3.net.version))

    def get_block(self, height: int):
        return self._call(
            f"eth_getBlockByNumber({height})",
            lambda: self.w3.eth.get_block(height),
        )

    def get_receipt(self, tx_hash):
        return self._call(
            f"eth_getTransactionReceipt({hex_str(tx_hash)})",
            lambda: self.w3.eth.get_transaction_receipt(tx_hash),
        )

    def get_transaction(self, tx_hash):
        return self._call(
            f"eth_getTransaction({hex_str(tx_hash)})",
            lambda: self.w3.eth.get_transaction(tx_hash),
        )
