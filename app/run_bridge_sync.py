# app/run_bridge_sync.py
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import asyncio
import json
from typing import List

from utils import logger, load_cfg
from infra import HttpContainer
from bridge.config import make_settings_from_cfg
from bridge.models import Swap, normalize_user_id
from bridge.serialize import swap_from_dict, swap_to_dict
from bridge.services.endpoints import make_endpoints_from_cfg
from bridge.services.summary_service import SummaryService
from bridge.services.sync_service import build_sync_service
from bridge.stores.swap_store import SwapStore


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Reconcile bridge swap statuses for one or more users")
    p.add_argument("user_ids", nargs="+", help="user ids (wallet addresses)")
    p.add_argument("--config", default=None, help="path to config.yaml")
    p.add_argument("--summary", action="store_true", help="print the per-user swap summary after syncing")
    p.add_argument("--list", action="store_true", help="print the user's swap records after syncing")
    p.add_argument("--seed", default=None, help="JSON file with a list of swap records to insert first")
    p.add_argument("--init-schema", action="store_true", help="create the bridge_swaps table if missing")
    return p.parse_args(argv)


def read_seed_file(path: str) -> List[Swap]:
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"seed file {path} must hold a JSON list of swap records")
    return [swap_from_dict(r) for r in records]


async def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = load_cfg(args.config)
    settings = make_settings_from_cfg(cfg)
    endpoints = make_endpoints_from_cfg(cfg)

    store = SwapStore.from_url(settings.database_url, echo=settings.database_echo)
    if args.init_schema:
        await store.init_schema()

    try:
        if args.seed:
            swaps = read_seed_file(args.seed)
            await store.insert(swaps)
            logger.info(f"seeded {len(swaps)} swaps from {args.seed}")

        async with await HttpContainer.start(cfg) as container:
            sync_service = build_sync_service(settings, endpoints, container.http, store)
            summaries = SummaryService(store, sync_service)

            user_ids = [normalize_user_id(u) for u in args.user_ids]
            if args.summary:
                results = await asyncio.gather(*(summaries.summary(u) for u in user_ids))
                for user_id, s in zip(user_ids, results):
                    print(json.dumps({"userId": user_id, **s.to_dict()}))
            else:
                await asyncio.gather(*(sync_service.sync(u) for u in user_ids))
                logger.info(f"sync finished for {len(user_ids)} users")

            if args.list:
                for user_id in user_ids:
                    for swap in await store.query(user_id):
                        print(json.dumps(swap_to_dict(swap)))
    finally:
        await store.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
