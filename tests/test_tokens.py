"""API token lifecycle scenarios."""

import pytest


async def _bootstrap(client) -> dict:
    response = await client.post(
        "/v1/bootstrap",
        json={
            "organization_name": "Acme",
            "owner_user_id": "alice",
            "tier": "pro_team",
        },
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
    return {"Authorization": f"Bearer {response.json()['api_token']['token']}"}


async def _current_token_id(client, headers) -> str:
    response = await client.get("/v1/tokens/current", headers=headers)
    assert response.status_code == 200
    return response.json()["id"]


class TestTokenIssuance:
    """Issuing and listing member tokens."""

    @pytest.mark.asyncio
    async def test_issue_and_list(self, client) -> None:
        """Issue a second token that authenticates and lists without plaintext.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts issuance and listing.
        """
        headers = await _bootstrap(client)

        created = await client.post(
            "/v1/tokens", headers=headers, json={"name": "ci"}
        )

        assert created.status_code == 200
        body = created.json()
        assert body["token"].startswith("sdt")
        second = {"Authorization": f"Bearer {body['token']}"}
        assert (await client.get("/v1/secrets", headers=second)).status_code == 200

        listed = await client.get("/v1/tokens", headers=headers)
        assert listed.status_code == 200
        rows = listed.json()
        assert {row["name"] for row in rows} == {"default", "ci"}
        assert all("token" not in row for row in rows)
        assert all(row["revoked_at"] is None for row in rows)

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, client) -> None:
        """Reuse of a token name inside one organization is rejected.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the conflict.
        """
        headers = await _bootstrap(client)

        response = await client.post(
            "/v1/tokens", headers=headers, json={"name": "default"}
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "API token name already exists"

    @pytest.mark.asyncio
    async def test_members_only_see_their_own_tokens(self, client) -> None:
        """Scope listings to the caller unless they manage members.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts listing scope per role.
        """
        owner = await _bootstrap(client)
        member = await _invite(client, owner, "bob")

        own = await client.get("/v1/tokens", headers=member)
        everything = await client.get("/v1/tokens", headers=owner)

        assert [row["name"] for row in own.json()] == ["bob"]
        assert {row["name"] for row in everything.json()} == {"default", "bob"}


class TestTokenRevocation:
    """Revoking tokens."""

    @pytest.mark.asyncio
    async def test_revoked_token_stops_authenticating(self, client) -> None:
        """Reject a token once it is revoked.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts revocation takes effect.
        """
        headers = await _bootstrap(client)
        created = await client.post(
            "/v1/tokens", headers=headers, json={"name": "laptop"}
        )
        token = created.json()
        laptop = {"Authorization": f"Bearer {token['token']}"}

        revoked = await client.delete(f"/v1/tokens/{token['id']}", headers=headers)

        assert revoked.status_code == 200
        assert revoked.json()["revoked_at"] is not None
        assert (await client.get("/v1/secrets", headers=laptop)).status_code == 401
        assert (await client.get("/v1/secrets", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_revoke_twice_conflicts(self, client) -> None:
        """A revoked token cannot be revoked again.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the conflict.
        """
        headers = await _bootstrap(client)
        created = await client.post(
            "/v1/tokens", headers=headers, json={"name": "old"}
        )
        token_id = created.json()["id"]
        await client.delete(f"/v1/tokens/{token_id}", headers=headers)

        again = await client.delete(f"/v1/tokens/{token_id}", headers=headers)

        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_member_cannot_revoke_owner_token(self, client) -> None:
        """Members may revoke only their own tokens.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the permission check.
        """
        owner = await _bootstrap(client)
        member = await _invite(client, owner, "bob")
        owner_token_id = await _current_token_id(client, owner)

        denied = await client.delete(f"/v1/tokens/{owner_token_id}", headers=member)

        assert denied.status_code == 403
        assert (await client.get("/v1/secrets", headers=owner)).status_code == 200

    @pytest.mark.asyncio
    async def test_admin_revokes_member_token(self, client) -> None:
        """Member managers may revoke tokens of lower-ranked members.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the revocation and its effect.
        """
        owner = await _bootstrap(client)
        admin = await _invite(client, owner, "carol", role="admin")
        member = await _invite(client, owner, "bob")
        member_token_id = await _current_token_id(client, member)

        response = await client.delete(
            f"/v1/tokens/{member_token_id}", headers=admin
        )

        assert response.status_code == 200
        assert (await client.get("/v1/secrets", headers=member)).status_code == 401

    @pytest.mark.asyncio
    async def test_admin_cannot_revoke_owner_token(self, client) -> None:
        """Revoking another member's token needs an equal or higher role.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the rank check.
        """
        owner = await _bootstrap(client)
        admin = await _invite(client, owner, "carol", role="admin")
        owner_token_id = await _current_token_id(client, owner)

        response = await client.delete(f"/v1/tokens/{owner_token_id}", headers=admin)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_token(self, client) -> None:
        """Answer 404 for a token outside the organization.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.

        Returns
        -------
        None
            Asserts the lookup failure.
        """
        headers = await _bootstrap(client)

        response = await client.delete(
            "/v1/tokens/00000000-0000-0000-0000-000000000000", headers=headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "API token not found"
