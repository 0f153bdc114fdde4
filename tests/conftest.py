import json

import pytest
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector
from web3 import Web3

from gasreport.eth_client import ChainReader
from gasreport.registry import AbiDecoder, ContractEntry, ContractRegistry

NETWORK_ID = "1337"

DEPLOYER = Web3.to_checksum_address("0x" + "a1" * 20)
TOKEN_ADDRESS = Web3.to_checksum_address("0x" + "c3" * 20)
RECIPIENT = Web3.to_checksum_address("0x" + "b2" * 20)
STRANGER = Web3.to_checksum_address("0x" + "d4" * 20)

SIMPLE_TOKEN_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "initialSupply", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "setMemo",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "memo", "type": "bytes32"}],
        "outputs": [],
    },
]


def calldata(signature: str, types, values) -> str:
    payload = function_signature_to_4byte_selector(signature) + encode(types, values)
    return "0x" + payload.hex()


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def receipt(n, block, index, gas_used, to=None, contract_address=None, status=1):
    return {
        "blockNumber": block,
        "transactionIndex": index,
        "transactionHash": tx_hash(n),
        "status": status,
        "from": DEPLOYER,
        "to": to,
        "contractAddress": contract_address,
        "gasUsed": gas_used,
    }


class FakeEth:
    """The subset of ``w3.eth`` the report reads, served from dicts."""

    def __init__(self, blocks, receipts=None, transactions=None):
        self.blocks = blocks
        self.receipts = receipts or {}
        self.transactions = transactions or {}
        self.requested_blocks = []
        self._w3 = Web3()

    @property
    def block_number(self):
        return max(self.blocks, default=0)

    def get_block(self, number):
        self.requested_blocks.append(number)
        return self.blocks[number]

    def get_transaction_receipt(self, h):
        return self.receipts[h]

    def get_transaction(self, h):
        return self.transactions[h]

    def contract(self, **kwargs):
        return self._w3.eth.contract(**kwargs)


class FakeNet:
    version = NETWORK_ID


class FakeWeb3:
    def __init__(self, eth):
        self.eth = eth
        self.net = FakeNet()

    def is_connected(self):
        return True


@pytest.fixture
def token_registry():
    entry = ContractEntry(
        address=TOKEN_ADDRESS,
        name="SimpleToken",
        decoder=AbiDecoder(Web3(), SIMPLE_TOKEN_ABI),
    )
    return ContractRegistry([entry])


@pytest.fixture
def token_chain():
    """Height 3: empty block, SimpleToken deployment, then a transfer call."""
    transfer_input = calldata("transfer(address,uint256)", ["address", "uint256"], [RECIPIENT, 1000])
    eth = FakeEth(
        blocks={
            1: {"number": 1, "transactions": []},
            2: {"number": 2, "transactions": [tx_hash(1)]},
            3: {"number": 3, "transactions": [tx_hash(2)]},
        },
        receipts={
            tx_hash(1): receipt(1, 2, 0, "0x1e8480", contract_address=TOKEN_ADDRESS),
            tx_hash(2): receipt(2, 3, 0, 51234, to=TOKEN_ADDRESS),
        },
        transactions={
            tx_hash(2): {"hash": tx_hash(2), "to": TOKEN_ADDRESS, "input": transfer_input},
        },
    )
    return FakeWeb3(eth)


@pytest.fixture
def token_reader(token_chain):
    return ChainReader(token_chain)


@pytest.fixture
def build_dir(tmp_path):
    out = tmp_path / "build" / "contracts"
    out.mkdir(parents=True)
    artifact = {
        "contractName": "SimpleToken",
        "abi": SIMPLE_TOKEN_ABI,
        "networks": {NETWORK_ID: {"address": TOKEN_ADDRESS.lower()}},
    }
    (out / "SimpleToken.json").write_text(json.dumps(artifact), encoding="utf-8")
    return out
