"""Database management CLI for the order-fulfillment domains.

Creates and drops the stock ledger tables and the schemas of any RDBMS-backed
protean providers (production configuration).

Usage:
    python src/manage.py setup-db               # Create all tables
    python src/manage.py drop-db                # Drop all tables
    python src/manage.py setup-db --target stock
"""

import argparse
import sys

from sqlalchemy import create_engine

TARGETS = ["stock", "inventory", "ordering"]


def _domain(name):
    if name == "inventory":
        from inventory.domain import inventory

        return inventory
    from ordering.domain import ordering

    return ordering


def setup_databases(targets=None):
    """Create schemas for the specified (or all) targets."""
    from inventory import settings
    from inventory.ledger.sql_store import setup_stock_db
    from shared.db import setup_db

    for name in targets or TARGETS:
        if name == "stock":
            print(f"Creating stock ledger tables at {settings.stock_database_uri()}...")
            setup_stock_db(create_engine(settings.stock_database_uri()))
        else:
            domain = _domain(name)
            print(f"Initializing {name} domain...")
            domain.init()
            print(f"Creating {name} database schema...")
            setup_db(domain)
        print(f"  {name} schema ready.")

    print("Done.")


def drop_databases(targets=None):
    """Drop schemas for the specified (or all) targets."""
    from inventory import settings
    from inventory.ledger.sql_store import drop_stock_db
    from shared.db import drop_db

    for name in targets or TARGETS:
        if name == "stock":
            print("Dropping stock ledger tables...")
            drop_stock_db(create_engine(settings.stock_database_uri()))
        else:
            domain = _domain(name)
            print(f"Initializing {name} domain...")
            domain.init()
            print(f"Dropping {name} database schema...")
            drop_db(domain)
        print(f"  {name} schema dropped.")

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Order fulfillment database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create all database tables")
    setup_parser.add_argument(
        "--target",
        choices=TARGETS,
        nargs="*",
        help="Specific schema(s) to set up (default: all)",
    )

    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument(
        "--target",
        choices=TARGETS,
        nargs="*",
        help="Specific schema(s) to drop (default: all)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.target)
    elif args.command == "drop-db":
        drop_databases(args.target)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
