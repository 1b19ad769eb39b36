"""Create the default admin account if it does not exist yet.

Credentials come from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD.

Run from the backend directory:
    python -m scripts.seed_admin
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from subscription_api.config import settings
from subscription_api.database import Base, async_session_factory, engine
from subscription_api.models.user import Role
from subscription_api.services.user_service import create_account, get_user_by_email

logger = logging.getLogger("seed_admin")


async def seed() -> None:
    """Ensure tables exist, then insert the admin account once."""
    import subscription_api.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        existing = await get_user_by_email(db, settings.seed_admin_email)
        if existing is not None:
            logger.info("Admin %s already exists, nothing to do", existing.email)
        else:
            admin = await create_account(
                db,
                name="Admin",
                email=settings.seed_admin_email,
                password=settings.seed_admin_password,
                address="Admin Address",
                role=Role.ADMIN,
            )
            await db.commit()
            logger.info("Admin seeded: %s", admin.email)

    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(seed())
