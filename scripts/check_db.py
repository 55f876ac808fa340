#!/usr/bin/env python
"""Check that the Milkr database is reachable and migrated.

Usage:
    python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import get_settings

REQUIRED_TABLES = ("staff", "customer", "delivery_record")


async def check_database() -> int:
    """Verify connectivity and report row counts of the dairy tables."""
    settings = get_settings()

    print("Milkr - Database Check")
    print("=" * 30)
    print(f"Database: {settings.database_url.rsplit('@', 1)[-1]}")
    print()

    engine = create_async_engine(settings.database_url)

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            assert result.scalar() == 1
            print("[OK] Basic connectivity")

            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
            missing = [name for name in REQUIRED_TABLES if name not in tables]
            if missing:
                print(f"[WARN] Missing tables: {', '.join(missing)}")
                print("       Run: alembic upgrade head")
                return 1

            for name in REQUIRED_TABLES:
                count = (await conn.execute(text(f"SELECT COUNT(*) FROM {name}"))).scalar()
                print(f"[OK] {name}: {count} rows")

        print()
        print("Database check completed successfully!")
        return 0

    except Exception as e:
        print(f"[FAIL] Connection failed: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Ensure PostgreSQL is running")
        print("  2. Check DATABASE_URL in .env file")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
