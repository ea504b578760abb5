"""Apply the SQL files in this directory, in filename order, once each."""

import asyncio
import sys
from pathlib import Path

# Add api root to path so settings resolves when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncpg

import settings

MIGRATIONS_DIR = Path(__file__).parent


def pending_migrations(applied: set[str], migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
    """Return the .sql files not yet recorded in _migrations, sorted by name."""
    return [p for p in sorted(migrations_dir.glob("*.sql")) if p.name not in applied]


async def run_migrations(database_url: str | None = None) -> list[str]:
    database_url = database_url or settings.DATABASE_URL
    if not database_url:
        print("ERROR: DATABASE_URL not set")
        sys.exit(1)

    conn = await asyncpg.connect(database_url)
    applied_now: list[str] = []
    try:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                filename TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """)

        applied = {row["filename"] for row in await conn.fetch("SELECT filename FROM _migrations")}

        for sql_file in pending_migrations(applied):
            print(f"  APPLY {sql_file.name}")
            async with conn.transaction():
                await conn.execute(sql_file.read_text(encoding="utf-8"))
                await conn.execute("INSERT INTO _migrations (filename) VALUES ($1)", sql_file.name)
            applied_now.append(sql_file.name)
    finally:
        await conn.close()

    print(f"Migrations complete ({len(applied_now)} applied).")
    return applied_now


if __name__ == "__main__":
    asyncio.run(run_migrations())
