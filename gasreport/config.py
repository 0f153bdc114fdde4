from pathlib import Path
import os
from dotenv import load_dotenv

# Load environment variables from .env
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

# Contracts deployed by the migrations, in deployment order
DEFAULT_CONTRACT_NAMES = [
    "Migrations",
    "IBCCommitment",
    "IBCMsgs",
    "IBCClient",
    "IBCConnection",
    "IBCChannel",
    "OwnableIBCHandler",
    "MockClient",
    "IBFT2Client",
    "SimpleToken",
    "ICS20Bank",
    "ICS20TransferBank",
]


def parse_contract_names(value: str) -> list:
    return [name.strip() for name in value.split(",") if name.strip()]


RPC_URL = os.getenv("GASREPORT_RPC_URL", "http://127.0.0.1:8545")
BUILD_DIR = Path(os.getenv("GASREPORT_BUILD_DIR", str(BASE_DIR / "build" / "contracts")))
NETWORK_ID = os.getenv("GASREPORT_NETWORK_ID", "")
OUTPUT_PATH = Path(os.getenv("GASREPORT_OUTPUT", "report.csv"))

CONTRACT_NAMES = parse_contract_names(os.getenv("GASREPORT_CONTRACTS", "")) or DEFAULT_CONTRACT_NAMES
