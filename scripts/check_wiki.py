"""Check the Wiki.js connection: print system info and the most recent pages.

Read-only; nothing is created or modified on the wiki.

Usage:
    python scripts/check_wiki.py --limit 5
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wikiscribe.config import settings  # noqa: E402
from wikiscribe.wiki.publisher import build_wiki_client  # noqa: E402


async def check(limit: int, show_latest: bool) -> None:
    async with build_wiki_client(settings) as client:
        print(f"Endpoint: {client.endpoint}")

        info = await client.system_info()
        print(f"Wiki.js {info.get('currentVersion', '?')} on {info.get('hostname', '?')}")

        pages = await client.list_pages(locale=settings.wikijs_locale, limit=limit)
        print(f"\n{len(pages)} most recent pages:")
        for page in pages:
            print(f"  [{page['id']}] /{page['path']} -- {page['title']}")

        if show_latest and pages:
            latest = await client.get_page(int(pages[0]["id"]))
            if latest:
                print(f"\nLatest page: {latest['title']} (updated {latest.get('updatedAt')})")
                print(latest.get("content", "")[:500])


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--show-latest", action="store_true")
    args = parser.parse_args()

    try:
        asyncio.run(check(args.limit, args.show_latest))
    except Exception as e:
        print(f"Connection check failed: {e}")
        sys.exit(1)
