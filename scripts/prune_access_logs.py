"""Delete access events that fell out of their tier's retention window."""

from __future__ import annotations

import logging

import anyio

from app.config import get_settings
from app.database import SessionLocal, engine
from app.services.audit import prune_access_logs

logger = logging.getLogger("secret_drop.prune")


async def main() -> None:
    """Prune access logs for every organization.

    Returns
    -------
    None
        Deletes expired events and prints a short summary.
    """
    logging.basicConfig(level=get_settings().log_level)
    async with SessionLocal() as session:
        removed = await prune_access_logs(session)
        await session.commit()
    await engine.dispose()
    logger.info("Access-log prune finished")
    print(f"pruned {removed} access events")


if __name__ == "__main__":
    anyio.run(main)
