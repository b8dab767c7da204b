#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Create the warranty record table on the relational store and optionally
seed demo records.

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --seed

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)


DEMO_RECORDS = [
    {
        "management_id": "URC0000002",
        "maker": "Lenovo",
        "model": "ThinkPad X1 Carbon",
        "serial": "PF-2X9K3L",
        "purchase_site": "Mercari",
        "purchase_date": date(2025, 1, 10),
        "purchase_amount": 48000,
    },
    {
        "management_id": "URC0000003",
        "full_name": "山田 太郎",
        "furigana": "ヤマダ タロウ",
        "phone": "090-1111-2222",
        "postal_code": "150-0001",
        "address": "東京都渋谷区神宮前1-1-1",
        "maker": "Dell",
        "model": "XPS 13",
        "serial": "DL-77AB12",
        "purchase_site": "Yahoo Auctions",
        "purchase_date": date(2025, 3, 1),
        "warranty_plan": "Mプラン（6ヶ月）",
        "warranty_period": 6,
        "warranty_end_date": date(2025, 9, 1),
        "review_pledge": True,
        "terms_agreed": True,
    },
]


async def init_schema() -> bool:
    """Create the warranty_records table."""
    from shared.database.postgres import Base, PostgresClient

    # Registers WarrantyRecordRow on Base.metadata
    from services.registration.stores.relational import WarrantyRecordRow

    logger.info("initializing_schema", table=WarrantyRecordRow.__tablename__)

    try:
        engine = PostgresClient.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("schema_initialized")
        return True

    except Exception as e:
        logger.error("schema_initialization_failed", error=str(e))
        return False


async def seed_data() -> bool:
    """Seed demo warranty records for development."""
    from sqlalchemy import select

    from shared.database.postgres import postgres_session
    from services.registration.stores.relational import WarrantyRecordRow

    logger.info("seeding_demo_records")

    try:
        async with postgres_session() as session:
            existing = set(
                (
                    await session.execute(
                        select(WarrantyRecordRow.management_id).where(
                            WarrantyRecordRow.management_id.in_(
                                [r["management_id"] for r in DEMO_RECORDS]
                            )
                        )
                    )
                ).scalars()
            )
            for values in DEMO_RECORDS:
                if values["management_id"] in existing:
                    logger.info("demo_record_exists", management_id=values["management_id"])
                    continue
                session.add(WarrantyRecordRow(**values))
                logger.info("demo_record_added", management_id=values["management_id"])

        return True

    except Exception as e:
        logger.error("seeding_failed", error=str(e))
        return False


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    from shared.database.postgres import PostgresClient

    results = {"Schema": await init_schema()}

    if args.seed and results["Schema"]:
        results["Seed Data"] = await seed_data()

    await PostgresClient.close()

    failed = [name for name, success in results.items() if not success]
    for name, success in results.items():
        logger.info("initialization_step", step=name, ok=success)

    if failed:
        logger.error("initialization_failed", failed=failed)
        return 1

    logger.info("initialization_complete")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize the warranty record database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--seed",
        action="store_true",
        help="Seed demo warranty records",
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
