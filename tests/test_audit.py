"""Access-log retention tests."""

from datetime import datetime, timedelta, timezone

import pytest

from app.models.secret import Secret
from app.services.audit import (
    AccessAction,
    list_access_logs,
    log_access,
    prune_access_logs,
)
from app.services.organizations import create_organization
from app.services.request_metadata import RequestMetadata
from app.services.tiers import Tier

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _seed(session, tier: Tier, name: str) -> tuple:
    organization, owner = await create_organization(
        session,
        name=name,
        owner_user_id="alice",
        tier=tier,
        token_name="default",
    )
    secret = Secret(
        org_id=organization.id,
        created_by=owner.member.user_id,
        name="db password",
        ciphertext="AAAA",
        iv="AAAAAAAAAAAAAAAA",
        key_hash="A" * 43 + "=",
    )
    session.add(secret)
    await session.flush()

    old = await log_access(session, secret=secret, action=AccessAction.SHARE)
    old.accessed_at = NOW - timedelta(days=45)
    recent = await log_access(
        session,
        secret=secret,
        action=AccessAction.VIEW,
        metadata=RequestMetadata(ip_address="192.0.2.1", user_agent="pytest"),
    )
    recent.accessed_at = NOW - timedelta(hours=1)
    await session.flush()
    return organization, secret


class TestAccessLogRetention:
    """Tier retention windows for access events."""

    @pytest.mark.asyncio
    async def test_listing_hides_expired_events(self, session_factory) -> None:
        """Show only events inside the tier window.

        Parameters
        ----------
        session_factory : async_sessionmaker[AsyncSession]
            Session factory for the test database.

        Returns
        -------
        None
            Asserts retention filtering.
        """
        async with session_factory() as session:
            pro, pro_secret = await _seed(session, Tier.PRO_TEAM, "Pro")
            business, business_secret = await _seed(session, Tier.BUSINESS, "Biz")

            pro_events = await list_access_logs(
                session,
                organization=pro,
                secret_id=pro_secret.id,
                limit=50,
                offset=0,
                now=NOW,
            )
            business_events = await list_access_logs(
                session,
                organization=business,
                secret_id=business_secret.id,
                limit=50,
                offset=0,
                now=NOW,
            )

        assert [event.action for event in pro_events] == ["view"]
        assert pro_events[0].ip_address == "192.0.2.1"
        assert [event.action for event in business_events] == ["view", "share"]

    @pytest.mark.asyncio
    async def test_prune_respects_each_tier(self, session_factory) -> None:
        """Delete only events outside bounded retention windows.

        Parameters
        ----------
        session_factory : async_sessionmaker[AsyncSession]
            Session factory for the test database.

        Returns
        -------
        None
            Asserts pruning counts.
        """
        async with session_factory() as session:
            await _seed(session, Tier.FREE, "Free")
            await _seed(session, Tier.PRO_TEAM, "Pro")
            await _seed(session, Tier.BUSINESS, "Biz")
            await session.commit()

            removed = await prune_access_logs(session, now=NOW)
            again = await prune_access_logs(session, now=NOW)

        # Business keeps everything.
        assert removed == 2
        assert again == 0
