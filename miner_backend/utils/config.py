# miner_backend/utils/config.py
# Constants and env overrides only; no project imports here.
import os

U64_MAX = (1 << 64) - 1
DIGEST_SIZE = 32

# Search: how often each worker looks at the shared found flag
FOUND_CHECK_INTERVAL = int(os.getenv("FOUND_CHECK_INTERVAL", "10000"))
DEFAULT_HASH = os.getenv("MINER_HASH", "keccak256")

# Submission pipeline retry bounds (attempts, not retries after the first)
SIMULATION_RETRIES = 4
GATEWAY_RETRIES = 4
CONFIRM_RETRIES = 4
RPC_RETRIES = 0                     # maxRetries passed to sendTransaction

GATEWAY_DELAY_S = 2.0               # wait between failed sends
CONFIRM_DELAY_S = 2.0               # wait before each status poll
SIMULATION_DELAY_S = 0.0

# Added on top of simulated usage when setting the compute unit limit
CU_LIMIT_MARGIN = 1000

# Finality the pipeline waits for
COMMITMENT = os.getenv("MINER_COMMITMENT", "confirmed")

# Token display
TOKEN_DECIMALS = 11

# Program / account addresses
MINER_PROGRAM_ID = os.getenv("MINER_PROGRAM_ID", "mineRHF5r6S7HyD9SppBfVMXMavDkJsxwGesEvxZr2A")
COMPUTE_BUDGET_PROGRAM_ID = "ComputeBudget111111111111111111111111111111"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TREASURY_ADDRESS = os.getenv("MINER_TREASURY", "FTap9fv2GPpWGqrLj3o4c9nHH7p36ih7NbSWHnrkQYqa")

BUS_ADDRESSES = [
    "9ShaCzHhQNvH8PLfGyrJbB8MeKHrDnuPMLnUDLJ2yMvz",
    "4Cq8685h9GwsaD5ppPsrtfcsk3fum8f9UP4SPpKSbj2B",
    "8L1vdGdvU3cPj9tsjJrKVUoBeXYvAzJYhExjTYHZT7h7",
    "JBdVURCrUiHp4kr9R4aYQZ4d2fXZ5dHqDPgb6ExzuHjx",
    "DkmVBWJ4CLKb3pPHoSwYC2wRZXKKXLD2Ued5cGNpkWmr",
    "9uLpj2ZCMqN6Yo1vV6yTkP6dDiTTXmeM5K3915q5CHyh",
    "EpcfjBs8eQ4unSMdowxyTE8K3vVJ3XUnEr5BEWvSX7RB",
    "Ay5N9vKS2Tyo2M9u9TFt59N1XbxdW93C7UrFZW3h8sMC",
]

TIP_ACCOUNTS = [
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
]

# Orchestration
STATE_RETRY_DELAY_S = float(os.getenv("STATE_RETRY_DELAY_S", "2"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
