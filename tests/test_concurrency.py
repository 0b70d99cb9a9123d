"""Concurrent view tests against the service layer."""

import asyncio
from uuid import UUID

import pytest
from fastapi import HTTPException

from app.models.secret import Secret
from app.services.secrets import view_secret
from secret_drop.crypto import EnvelopeCodec, derive_random_key, hash_key


async def _create_secret(client, **policy) -> tuple[UUID, str]:
    bootstrap = await client.post(
        "/v1/bootstrap",
        json={"organization_name": "Acme", "owner_user_id": "alice", "tier": "pro_team"},
    )
    headers = {"Authorization": f"Bearer {bootstrap.json()['api_token']['token']}"}
    key = derive_random_key()
    envelope = EnvelopeCodec().encrypt("one time", key)
    response = await client.post(
        "/v1/secrets",
        headers=headers,
        json={"name": "race", "envelope": envelope.to_dict(), **policy},
    )
    assert response.status_code == 200
    return UUID(response.json()["id"]), hash_key(key)


class TestConcurrentViews:
    """Racing viewers never exceed the view limit."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "policy", [{"max_views": 1}, {"burn_on_read": True}, {"max_views": 3}]
    )
    async def test_views_never_exceed_limit(
        self, client, session_factory, policy
    ) -> None:
        """Grant at most the allowed number of views under contention.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        session_factory : async_sessionmaker[AsyncSession]
            Session factory for the test database.
        policy : dict
            Secret access policy.

        Returns
        -------
        None
            Asserts the view ceiling holds.
        """
        secret_id, key_hash = await _create_secret(client, **policy)
        allowed = policy.get("max_views", 1)

        async def attempt() -> bool:
            async with session_factory() as session:
                try:
                    outcome = await view_secret(session, secret_id, key_hash=key_hash)
                except HTTPException as exc:
                    assert exc.status_code == 410
                    return False
                await session.commit()
                return outcome.granted

        results = await asyncio.gather(*(attempt() for _ in range(6)))

        async with session_factory() as session:
            secret = await session.get(Secret, secret_id)

        assert sum(results) == allowed
        assert secret.view_count == allowed
