"""Simple entrypoint that lists the configured user's closet locally."""

import asyncio
import json
import os
from dataclasses import asdict

from closet_app.app import ClosetApp
from closet_app.logging_config import configure_logging
from tools.identity import StaticIdentityProvider


async def _show_closet(app: ClosetApp) -> dict:
    outfits = await app.list_outfits()
    wishlist = await app.list_wishlist()
    return {
        "outfits": [asdict(outfit) for outfit in outfits],
        "wishlist": [asdict(item) for item in wishlist],
    }


def main() -> None:
    configure_logging()
    app = ClosetApp(identity=StaticIdentityProvider(os.getenv("CLOSET_USER_ID")))
    print(json.dumps(asyncio.run(_show_closet(app)), default=str, indent=2))


if __name__ == "__main__":
    main()
