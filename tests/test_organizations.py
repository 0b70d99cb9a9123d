"""Organization, membership and access-log scenarios."""

import pytest

from secret_drop.crypto import EnvelopeCodec, derive_random_key, hash_key


async def _bootstrap(client, tier: str = "pro_team") -> dict:
    response = await client.post(
        "/v1/bootstrap",
        json={"organization_name": "Acme", "owner_user_id": "alice", "tier": tier},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['api_token']['token']}"}


async def _invite(client, headers, user_id: str, role: str = "member") -> dict:
    response = await client.post(
        "/v1/organizations/members",
        headers=headers,
        json={"user_id": user_id, "role": role},
    )
    assert response.status_code == 200
    body = response.json()
    return {
        "member_id": body["member"]["id"],
        "headers": {"Authorization": f"Bearer {body['api_token']['token']}"},
    }


async def _create_secret(client, headers, **policy) -> tuple[str, object]:
    key = derive_random_key()
    envelope = EnvelopeCodec().encrypt("value", key)
    response = await client.post(
        "/v1/secrets",
        headers=headers,
        json={"name": "token", "envelope": envelope.to_dict(), **policy},
    )
    assert response.status_code == 200
    return response.json()["id"], key


class TestBootstrapAndAuth:
    """Bootstrap and token authentication."""

    @pytest.mark.asyncio
    async def test_missing_and_invalid_tokens(self, client) -> None:
        """Reject requests without a valid bearer token.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts authentication failures.
        """
        missing = await client.get("/v1/secrets")
        invalid = await client.get(
            "/v1/secrets", headers={"Authorization": "Bearer sdt_nope"}
        )

        assert missing.status_code == 401
        assert invalid.status_code == 401

    @pytest.mark.asyncio
    async def test_duplicate_organization_name(self, client) -> None:
        """Refuse a second organization with the same name.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts name uniqueness.
        """
        await _bootstrap(client)
        duplicate = await client.post(
            "/v1/bootstrap",
            json={"organization_name": "Acme", "owner_user_id": "bob"},
        )

        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_bootstrap_disabled(
        self, client, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Refuse bootstrap when turned off in settings.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        monkeypatch : pytest.MonkeyPatch
            Environment monkeypatch helper.

        Returns
        -------
        None
            Asserts the bootstrap switch.
        """
        monkeypatch.setenv("SECRET_DROP_BOOTSTRAP_ENABLED", "false")

        response = await client.post(
            "/v1/bootstrap",
            json={"organization_name": "Acme", "owner_user_id": "alice"},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Bootstrap disabled"

    @pytest.mark.asyncio
    async def test_default_tier_from_settings(
        self, client, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Apply the configured default tier when none is requested.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        monkeypatch : pytest.MonkeyPatch
            Environment monkeypatch helper.

        Returns
        -------
        None
            Asserts the default tier.
        """
        monkeypatch.setenv("SECRET_DROP_DEFAULT_TIER", "business")

        response = await client.post(
            "/v1/bootstrap",
            json={"organization_name": "Acme", "owner_user_id": "alice"},
        )

        assert response.json()["tier"] == "business"

    @pytest.mark.asyncio
    async def test_paid_tier_may_own_several_organizations(self, client) -> None:
        """Let Pro Team owners create more organizations.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts organization creation.
        """
        headers = await _bootstrap(client)

        response = await client.post(
            "/v1/organizations", headers=headers, json={"name": "Side project"}
        )

        assert response.status_code == 200
        assert response.json()["organization"]["tier"] == "pro_team"


class TestMembership:
    """Role-based access inside an organization."""

    @pytest.mark.asyncio
    async def test_member_permissions_on_secrets(self, client) -> None:
        """Let members manage only the secrets they created.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts ownership rules.
        """
        owner_headers = await _bootstrap(client)
        member = await _invite(client, owner_headers, "bob")
        owner_secret, _ = await _create_secret(client, owner_headers)
        member_secret, _ = await _create_secret(client, member["headers"])

        listed = await client.get("/v1/secrets", headers=member["headers"])
        forbidden = await client.delete(
            f"/v1/secrets/{owner_secret}", headers=member["headers"]
        )
        allowed = await client.delete(
            f"/v1/secrets/{member_secret}", headers=member["headers"]
        )

        assert {row["id"] for row in listed.json()} == {owner_secret, member_secret}
        assert forbidden.status_code == 403
        assert forbidden.json()["detail"] == (
            "You do not have permission to delete this secret"
        )
        assert allowed.status_code == 200

    @pytest.mark.asyncio
    async def test_member_cannot_invite(self, client) -> None:
        """Reserve invitations for owners and admins.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the invite permission.
        """
        owner_headers = await _bootstrap(client)
        member = await _invite(client, owner_headers, "bob")

        response = await client.post(
            "/v1/organizations/members",
            headers=member["headers"],
            json={"user_id": "carol"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_ownership(self, client) -> None:
        """Keep ownership grants with owners.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts role assignment limits.
        """
        owner_headers = await _bootstrap(client)
        admin = await _invite(client, owner_headers, "bob", role="admin")
        member = await _invite(client, admin["headers"], "carol")

        promote = await client.patch(
            f"/v1/organizations/members/{member['member_id']}",
            headers=admin["headers"],
            json={"role": "owner"},
        )
        owner_promote = await client.patch(
            f"/v1/organizations/members/{member['member_id']}",
            headers=owner_headers,
            json={"role": "admin"},
        )
        members = await client.get("/v1/organizations/members", headers=owner_headers)

        assert promote.status_code == 403
        assert owner_promote.status_code == 200
        assert owner_promote.json()["role"] == "admin"
        assert [row["user_id"] for row in members.json()] == ["alice", "bob", "carol"]

    @pytest.mark.asyncio
    async def test_duplicate_member(self, client) -> None:
        """Refuse adding the same user twice.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts membership uniqueness.
        """
        owner_headers = await _bootstrap(client)
        await _invite(client, owner_headers, "bob")

        response = await client.post(
            "/v1/organizations/members",
            headers=owner_headers,
            json={"user_id": "bob"},
        )

        assert response.status_code == 409


class TestAccessLogs:
    """Access events recorded for secrets."""

    @pytest.mark.asyncio
    async def test_share_and_view_are_logged(self, client) -> None:
        """Record the share and each granted view with request metadata.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts access-log contents.
        """
        headers = await _bootstrap(client)
        secret_id, key = await _create_secret(client, headers)
        await client.post(
            f"/v1/public/secrets/{secret_id}/view",
            headers={"X-Forwarded-For": "198.51.100.4", "User-Agent": "pytest"},
            json={"key_hash": hash_key(key)},
        )

        response = await client.get(
            f"/v1/secrets/{secret_id}/access-logs", headers=headers
        )

        assert response.status_code == 200
        events = response.json()
        assert [event["action"] for event in events] == ["view", "share"]
        view = events[0]
        assert view["user_id"] is None
        assert view["ip_address"] == "198.51.100.4"
        assert view["user_agent"] == "pytest"
        assert events[1]["user_id"] == "alice"

    @pytest.mark.asyncio
    async def test_burned_secret_keeps_history(self, client) -> None:
        """List events for a secret that burned on its first view.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts closed secrets still expose their log.
        """
        headers = await _bootstrap(client)
        secret_id, key = await _create_secret(client, headers, burn_on_read=True)
        viewed = await client.post(
            f"/v1/public/secrets/{secret_id}/view",
            json={"key_hash": hash_key(key)},
        )
        assert viewed.status_code == 200

        response = await client.get(
            f"/v1/secrets/{secret_id}/access-logs", headers=headers
        )

        assert response.status_code == 200
        assert [event["action"] for event in response.json()] == ["view", "share"]

    @pytest.mark.asyncio
    async def test_deleted_secret_keeps_history(self, client) -> None:
        """List events for a secret the owner deleted.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the delete event is listed first.
        """
        headers = await _bootstrap(client)
        secret_id, _ = await _create_secret(client, headers)
        deleted = await client.delete(f"/v1/secrets/{secret_id}", headers=headers)
        assert deleted.status_code == 200

        response = await client.get(
            f"/v1/secrets/{secret_id}/access-logs", headers=headers
        )

        assert response.status_code == 200
        assert [event["action"] for event in response.json()] == ["delete", "share"]

    @pytest.mark.asyncio
    async def test_unknown_secret(self, client) -> None:
        """Answer 404 for logs of a secret outside the organization.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts scoping.
        """
        headers = await _bootstrap(client)

        response = await client.get(
            "/v1/secrets/00000000-0000-0000-0000-000000000000/access-logs",
            headers=headers,
        )

        assert response.status_code == 404
