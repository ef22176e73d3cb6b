# miner_backend/app/__init__.py
import os

import requests

from miner_backend.client.ledger_state import LedgerStateClient
from miner_backend.client.rpc_client import FinalityLevel, RpcClient
from miner_backend.core.send_and_confirm import SendAndConfirm
from miner_backend.utils.config import COMMITMENT
from miner_backend.utils.crypto_hash import get_hasher
from miner_backend.wallet.wallet import Wallet
from .miner import Miner, RoundResult


def load_wallet(path: str) -> Wallet:
    """Load the PEM keypair at ``path``, creating one there on first run."""
    if not path:
        wallet = Wallet()
        print(f"[app] no keypair given; using throwaway wallet {wallet.address}")
        return wallet
    if os.path.exists(os.path.expanduser(path)):
        wallet = Wallet.load(path)
        print(f"[app] loaded keypair {wallet.address} from {path}")
        return wallet
    wallet = Wallet()
    wallet.save(path)
    print(f"[app] created keypair {wallet.address} at {path}")
    return wallet


def create_miner(args) -> Miner:
    """Wire transport, ledger state, signer and pipeline from parsed CLI args."""
    sess = requests.Session()
    if args.token:
        sess.headers.update({"X-Miner-Token": args.token})

    wallet = load_wallet(args.keypair)
    rpc = RpcClient(args.rpc, session=sess)
    state = LedgerStateClient(args.state_url or args.rpc, session=sess)
    commitment = FinalityLevel.parse(COMMITMENT)
    if commitment is None:
        commitment = FinalityLevel.CONFIRMED
    pipeline = SendAndConfirm(rpc, wallet, commitment=commitment)
    return Miner(
        wallet,
        state,
        pipeline,
        threads=args.threads,
        backend=args.backend,
        hasher=get_hasher(args.hash),
        dynamic_cus=args.dynamic_cus,
        skip_confirm=args.skip_confirm,
        tip_lamports=args.tip,
    )


__all__ = ["Miner", "RoundResult", "create_miner", "load_wallet"]
