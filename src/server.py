"""Background runner for the order-fulfillment domains.

Runs the low-stock scheduler and, optionally, the Protean Engine workers
that consume domain events asynchronously (production configuration):
- LowStockScheduler: runs the low-stock check every
  ``LOW_STOCK_CHECK_INTERVAL_SECONDS``
- Engine: reads broker streams and invokes event handlers, e.g. the inventory
  handler that reserves stock when an order is created

Usage:
    python src/server.py                      # Scheduler only
    python src/server.py --engine             # Scheduler plus both engines
    python src/server.py --engine --domain inventory
"""

import argparse
import asyncio

import structlog
from protean.server.engine import Engine

from bootstrap import build_runtimes, init_domains, shutdown_runtimes
from inventory import settings
from inventory.alert.management import LowStockScheduler
from inventory.domain import inventory
from ordering.domain import ordering
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

_DOMAINS = {"inventory": inventory, "ordering": ordering}


async def run(domain_names, with_engine, interval_seconds):
    tasks = [LowStockScheduler(inventory, interval_seconds).run_forever()]
    if with_engine:
        tasks.extend(Engine(_DOMAINS[name]).run() for name in domain_names)
    await asyncio.gather(*tasks)


def main():
    parser = argparse.ArgumentParser(description="Order fulfillment background runner")
    parser.add_argument(
        "--engine",
        action="store_true",
        help="Also run Protean Engine workers for asynchronous event processing",
    )
    parser.add_argument(
        "--domain",
        choices=sorted(_DOMAINS),
        help="Run a single domain engine (default: run all)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Low stock check interval in seconds (default: LOW_STOCK_CHECK_INTERVAL_SECONDS)",
    )
    args = parser.parse_args()

    configure_logging(service="fulfillment-worker")
    init_domains()
    inventory_runtime, _ = build_runtimes()

    domain_names = [args.domain] if args.domain else sorted(_DOMAINS)
    interval = args.interval if args.interval is not None else settings.low_stock_check_interval()
    try:
        asyncio.run(run(domain_names, args.engine, interval))
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        shutdown_runtimes(inventory_runtime)


if __name__ == "__main__":
    main()
