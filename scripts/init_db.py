"""Create the engine's tables in Postgres (Base.metadata.create_all).

Usage:
    python -m scripts.init_db [--drop]

Requires: DATABASE_BACKEND=postgres and DATABASE_URL (read from .env at the
project root). --drop removes existing tables first.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


async def _run(drop: bool) -> int:
    from agency.infrastructure.persistence import database
    from agency.infrastructure.persistence import models  # noqa: F401  registers tables

    engine = database.get_engine()
    if engine is None:
        print("DATABASE_BACKEND must be 'postgres' with DATABASE_URL set.", file=sys.stderr)
        return 1
    try:
        async with engine.begin() as conn:
            if drop:
                await conn.run_sync(database.Base.metadata.drop_all)
            await conn.run_sync(database.Base.metadata.create_all)
    finally:
        await database.dispose_engine()
    print(f"Created {len(database.Base.metadata.tables)} tables.")
    return 0


def main() -> None:
    load_dotenv(_project_root() / ".env", override=True)
    sys.exit(asyncio.run(_run(drop="--drop" in sys.argv[1:])))


if __name__ == "__main__":
    main()
