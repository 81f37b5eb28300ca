#!/usr/bin/env python3
"""
Warm and inspect the OECD data cache.

Usage:
    python warm_cache.py                     # Warm the popular dataflows
    python warm_cache.py QNA MEI             # Warm specific dataflows
    python warm_cache.py --stats [HOURS]     # Cache statistics (default 24h)
    python warm_cache.py --invalidate QNA    # Drop every cached entry of a dataflow
    python warm_cache.py --purge             # Drop access events past retention
    python warm_cache.py --evict             # Drop expired durable rows
"""

import asyncio
import sys
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent))

from app.container import Container
from settings import PREWARM_DATAFLOWS
from settings.logging import setup_logging

logger = setup_logging(to_file=True)


def print_stats(summary) -> None:
    """Print a cache summary."""
    print("\n" + "=" * 60)
    print(f"CACHE STATISTICS (last {summary.window_hours}h)")
    print("=" * 60)
    print(f"  Cached entries: {summary.total_cached_entries:,}")
    print(f"  Hits / misses:  {summary.total_hits:,} / {summary.total_misses:,}")
    print(f"  Hit rate:       {summary.hit_rate:.1%}")
    if summary.avg_response_time_ms is not None:
        print(f"  Avg response:   {summary.avg_response_time_ms} ms")
    if summary.top_dataflows:
        print("  Popular dataflows:")
        for d in summary.top_dataflows:
            print(f"    - {d.dataflow_id}: {d.hits} lookups")
    print("=" * 60 + "\n")


async def run(args: list[str]) -> int:
    async with Container() as c:
        if "--stats" in args:
            rest = [a for a in args if a.isdigit()]
            print_stats(await c.cache.get_statistics(int(rest[0]) if rest else 24))
            return 0

        if "--invalidate" in args:
            targets = [a for a in args if not a.startswith("--")]
            if not targets:
                print(__doc__)
                return 1
            for dataset_id in targets:
                removed = await c.cache.invalidate_dataset(dataset_id)
                logger.info("{}: {} entries removed", dataset_id, removed)
            return 0

        if "--purge" in args:
            logger.info("Purged {} access events", await c.cache.purge_events())
            return 0

        if "--evict" in args:
            logger.info("Evicted {} expired entries", await c.durable.evict_expired())
            return 0

        datasets = [a for a in args if not a.startswith("--")] or PREWARM_DATAFLOWS
        logger.info("Warming {} dataflows: {}", len(datasets), ", ".join(datasets))
        report = await c.cache.warm(datasets)
        return 1 if report.failed and not report.warmed and not report.skipped else 0


def main():
    args = sys.argv[1:]
    if "-h" in args or "--help" in args:
        print(__doc__)
        return
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
