"""
Process workflow side effects (audit entries, notifications) still sitting in the outbox.

Events stay PENDING when the post-commit hand-off timed out and become FAILED
when processing raised; neither is retried automatically.

Usage:
    python backend/scripts/drain_outbox.py --batch-size 200 --max-batches 10
"""

import argparse
import asyncio

from newsroom.core.logging import setup_logging
from newsroom.services.side_effects import side_effect_coordinator


async def run(batch_size: int = 100, max_batches: int = 1) -> None:
    processed = 0
    failed = 0
    for batch in range(max_batches):
        stats = await side_effect_coordinator.drain_pending(limit=batch_size)
        processed += stats["processed"]
        failed += stats["failed"]
        print(f"Batch {batch + 1}: selected={stats['selected']} processed={stats['processed']} failed={stats['failed']}")
        if stats["selected"] < batch_size or stats["processed"] == 0:
            break
    print(f"Done. Processed {processed} events, {failed} failed.")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--batch-size", type=int, default=100)
    parser.add_argument("--max-batches", type=int, default=1)
    args = parser.parse_args()
    setup_logging()
    asyncio.run(run(batch_size=max(1, args.batch_size), max_batches=max(1, args.max_batches)))


if __name__ == "__main__":
    main()
