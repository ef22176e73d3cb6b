# miner_backend/app/__main__.py
import argparse
import logging
import os

from miner_backend.app import create_miner
from miner_backend.core.search import BACKENDS
from miner_backend.utils.config import DEFAULT_HASH, LOG_LEVEL
from miner_backend.utils.crypto_hash import HASHERS


def argp(argv=None):
    ap = argparse.ArgumentParser(prog="miner", description="Proof-of-work miner with reliable submission")
    ap.add_argument("--rpc", default=os.getenv("MINER_RPC_URL", "http://127.0.0.1:8899"))
    ap.add_argument("--state-url", default=os.getenv("MINER_STATE_URL", ""),
                    help="ledger state HTTP base (defaults to --rpc)")
    ap.add_argument("--keypair", default=os.getenv("MINER_KEYPAIR", ""))
    ap.add_argument("--token", default=os.getenv("MINER_TOKEN", ""))
    ap.add_argument("--threads", type=int, default=int(os.getenv("MINER_THREADS", str(os.cpu_count() or 1))))
    ap.add_argument("--backend", choices=BACKENDS, default=os.getenv("MINER_BACKEND", "process"))
    ap.add_argument("--hash", choices=sorted(HASHERS), default=DEFAULT_HASH)
    ap.add_argument("--no-dynamic-cus", dest="dynamic_cus", action="store_false",
                    default=os.getenv("MINER_DYNAMIC_CUS", "1") == "1",
                    help="skip simulation and the compute unit limit")
    ap.add_argument("--skip-confirm", action="store_true", default=os.getenv("MINER_SKIP_CONFIRM", "0") == "1")
    ap.add_argument("--tip", type=int, default=int(os.getenv("MINER_TIP_LAMPORTS", "0")),
                    help="lamports tipped per submission (0 disables)")
    ap.add_argument("--rounds", type=int, default=None, help="stop after N rounds")
    args = ap.parse_args(argv)
    if args.threads < 1:
        ap.error("--threads must be >= 1")
    if args.tip < 0:
        ap.error("--tip must be >= 0")
    return args


def main(argv=None) -> None:
    args = argp(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    miner = create_miner(args)
    print(f"[miner] starting. rpc={args.rpc} address={miner.wallet.address} threads={args.threads} "
          f"backend={args.backend} dynamic_cus={int(args.dynamic_cus)} skip_confirm={int(args.skip_confirm)}")
    miner.mine(rounds=args.rounds)


if __name__ == "__main__":
    main()
