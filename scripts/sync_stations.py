"""Populate the local station store from the directory.

Usage: python scripts/sync_stations.py [--pages N] [--page-size N]
"""
import argparse
import asyncio

from radiodeck.config import settings
from radiodeck.db.engine import async_session_factory
from radiodeck.main import configure_logging, ensure_tables
from radiodeck.services.directory_client import DirectoryClient
from radiodeck.services.station_service import sync_from_directory


async def sync(pages: int, page_size: int) -> int:
    await ensure_tables()
    directory = DirectoryClient()
    async with async_session_factory() as db:
        return await sync_from_directory(db, directory, pages=pages, page_size=page_size)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--pages", type=int, default=settings.SYNC_PAGES)
    parser.add_argument("--page-size", type=int, default=settings.SYNC_PAGE_SIZE)
    args = parser.parse_args()

    configure_logging()
    synced = asyncio.run(sync(args.pages, args.page_size))
    print(f"Stored {synced} stations in {settings.DATABASE_URL}")


if __name__ == "__main__":
    main()
