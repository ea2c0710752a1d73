#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Watch one citizen's complaints and report pending confirmations.

Subscribes to the owner's change feed, reconciles every event through the
lifecycle engine and logs each complaint whose status change awaits the
citizen's decision. Stops on Ctrl+C or after --duration seconds.
"""

import sys
import os
import argparse
import asyncio
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.complaint_store import ComplaintStore
from services.geo import GeoResolver
from services.lifecycle import LifecycleEngine
from services.mongodb import get_mongodb_service, close_mongodb_connection
from services.notifier import ChangeNotifier, SubscriptionError
from services.storage import EvidenceStorageService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def watch(owner_id: str, duration: float = None, poll_interval: float = 0.5) -> None:
    mongodb_service = get_mongodb_service()
    store = ComplaintStore(mongodb_service)
    engine = LifecycleEngine(store, EvidenceStorageService(mongodb_service), GeoResolver())
    notifier = ChangeNotifier(store, poll_interval=poll_interval)

    async with notifier.subscribe(owner_id) as subscription:
        consumer = asyncio.create_task(engine.run(subscription))
        try:
            await asyncio.wait_for(asyncio.shield(consumer), timeout=duration)
        except asyncio.TimeoutError:
            logger.info(f"Stopping after {duration} seconds")
        except SubscriptionError as e:
            logger.error(f"Change feed stopped: {e}")

    # The closed feed ends the consumer loop
    if not consumer.done():
        await consumer

    pending = engine.pending_confirmations()
    logger.info(f"{len(pending)} complaint(s) awaiting confirmation: {', '.join(pending) or '-'}")


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('owner_id', help="Citizen id whose complaints are watched")
    parser.add_argument('--duration', type=float, help="Stop after this many seconds")
    parser.add_argument('--poll-interval', type=float, default=0.5, help="Idle wait between feed polls")
    args = parser.parse_args(argv)

    try:
        asyncio.run(watch(args.owner_id, args.duration, args.poll_interval))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        close_mongodb_connection()


if __name__ == "__main__":
    main()
