"""Tests for Google sign-in."""

from unittest.mock import patch

import pytest
from google.auth.exceptions import TransportError

from astroshare.exceptions import InvalidGoogleCredentialError
from astroshare.services.google import GoogleIdentityVerifier


class TestGoogleIdentityVerifier:
    """Tests for GoogleIdentityVerifier."""

    @pytest.mark.asyncio
    async def test_returns_identity(self):
        """Test verified claims become a GoogleIdentity."""
        verifier = GoogleIdentityVerifier("client-id")
        claims = {
            "sub": "g-123",
            "email": "bob@gmail.com",
            "email_verified": True,
            "picture": "https://lh3.googleusercontent.com/bob",
        }

        with patch(
            "astroshare.services.google.id_token.verify_oauth2_token", return_value=claims
        ) as mock_verify:
            identity = await verifier.verify("credential")

        assert identity.sub == "g-123"
        assert identity.email == "bob@gmail.com"
        assert identity.picture == "https://lh3.googleusercontent.com/bob"
        assert mock_verify.call_args.kwargs["audience"] == "client-id"

    @pytest.mark.asyncio
    async def test_unverified_email_dropped(self):
        """Test an email Google has not verified is not trusted."""
        verifier = GoogleIdentityVerifier("client-id")
        claims = {"sub": "g-1", "email": "who@example.com", "email_verified": False}

        with patch(
            "astroshare.services.google.id_token.verify_oauth2_token", return_value=claims
        ):
            identity = await verifier.verify("credential")

        assert identity.email is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [ValueError("Wrong audience"), TransportError("offline")])
    async def test_rejected_credential(self, error):
        """Test signature, audience and transport failures all reject the credential."""
        verifier = GoogleIdentityVerifier("client-id")

        with patch(
            "astroshare.services.google.id_token.verify_oauth2_token", side_effect=error
        ):
            with pytest.raises(InvalidGoogleCredentialError):
                await verifier.verify("credential")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("client_id", [None, ""])
    async def test_rejects_without_client_id(self, client_id):
        """Test nothing is accepted when there is no audience to check against."""
        verifier = GoogleIdentityVerifier(client_id)
        claims = {"sub": "g-1", "email": "any@gmail.com", "email_verified": True}

        with patch(
            "astroshare.services.google.id_token.verify_oauth2_token", return_value=claims
        ) as mock_verify:
            with pytest.raises(InvalidGoogleCredentialError):
                await verifier.verify("token-for-another-app")

        mock_verify.assert_not_called()


class TestGoogleSignIn:
    """Tests for POST /api/auth/google."""

    def test_first_sign_in_creates_user(self, client, google):
        """Test bob's first Google sign-in creates an account named after his email."""
        google.register("tok-bob", sub="g-bob", email="bob@gmail.com", picture="https://pic/bob")

        response = client.post("/api/auth/google", json={"credential": "tok-bob"})
        assert response.status_code == 200
        data = response.json()
        assert data["userName"] == "bob"
        assert data["email"] == "bob@gmail.com"
        assert data["profilePictureUrl"] == "https://pic/bob"
        assert data["accessToken"]
        assert data["refreshToken"]

        me = client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"}
        )
        assert me.json()["googleLinked"] is True

    def test_repeat_sign_in_reuses_user(self, client, google):
        """Test signing in twice reaches the same account with two sessions."""
        google.register("tok-bob", sub="g-bob", email="bob@gmail.com")

        first = client.post("/api/auth/google", json={"credential": "tok-bob"}).json()
        second = client.post("/api/auth/google", json={"credential": "tok-bob"}).json()

        assert first["_id"] == second["_id"]
        assert first["refreshToken"] != second["refreshToken"]
        for token in (first["refreshToken"], second["refreshToken"]):
            response = client.post("/api/auth/refresh", json={"refreshToken": token})
            assert response.status_code == 200

    def test_default_picture_without_google_picture(self, client, google):
        """Test accounts without a Google picture get the placeholder."""
        google.register("tok", sub="g-1", email="nopic@gmail.com")

        response = client.post("/api/auth/google", json={"credential": "tok"})
        assert response.json()["profilePictureUrl"].endswith("/public/default_profile.png")

    def test_links_existing_password_account(self, client, google, auth_headers):
        """Test a Google sign-in with a known email signs into that account."""
        google.register("tok-tester", sub="g-tester", email="tester@example.com")

        response = client.post("/api/auth/google", json={"credential": "tok-tester"})
        assert response.status_code == 200
        assert response.json()["_id"] == auth_headers.user_id
        assert response.json()["userName"] == "tester"

        me = client.get("/api/auth/me", headers=auth_headers)
        assert me.json()["googleLinked"] is True

    def test_derived_username_taken(self, client, google, make_user):
        """Test carol is asked to pick a username when hers is taken."""
        make_user("carol", "carol@example.com")
        google.register("tok-carol", sub="g-carol", email="carol@gmail.com")

        response = client.post("/api/auth/google", json={"credential": "tok-carol"})
        assert response.status_code == 409
        data = response.json()
        assert data["detail"] == "Username already exists"
        assert data["message"] == "Please choose another username"
        assert data["email"] == "carol@gmail.com"
        assert data["suggestedUserName"] == "carol"
        assert "accessToken" not in data

    def test_changed_google_email_reaches_same_account(self, client, google):
        """Test a returning Google user whose email changed is matched by subject."""
        google.register("tok-old", sub="g-1", email="old@gmail.com")
        google.register("tok-new", sub="g-1", email="new@gmail.com")

        first = client.post("/api/auth/google", json={"credential": "tok-old"})
        second = client.post("/api/auth/google", json={"credential": "tok-new"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["_id"] == first.json()["_id"]
        assert second.json()["userName"] == "old"

    def test_invalid_credential(self, client):
        """Test a credential Google rejects."""
        response = client.post("/api/auth/google", json={"credential": "forged"})
        assert response.status_code == 401

    def test_missing_credential(self, client, google):
        """Test the credential is required and Google is not consulted without it."""
        response = client.post("/api/auth/google", json={})
        assert response.status_code == 400
        assert google.calls == []

    def test_identity_without_email(self, client, google):
        """Test an identity without a usable email is refused."""
        google.register("tok", sub="g-1", email=None)

        response = client.post("/api/auth/google", json={"credential": "tok"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Google authentication failed: No email found."


class TestGoogleComplete:
    """Tests for POST /api/auth/google/complete."""

    def test_complete_with_new_username(self, client, google, make_user):
        """Test carol finishes sign-in under a username of her choice."""
        make_user("carol", "carol@example.com")
        google.register("tok-carol", sub="g-carol", email="carol@gmail.com")
        client.post("/api/auth/google", json={"credential": "tok-carol"})

        response = client.post(
            "/api/auth/google/complete",
            json={"credential": "tok-carol", "newUsername": "carol_g"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["userName"] == "carol_g"
        assert data["email"] == "carol@gmail.com"
        assert data["refreshToken"]

        again = client.post("/api/auth/google", json={"credential": "tok-carol"})
        assert again.status_code == 200
        assert again.json()["_id"] == data["_id"]

    def test_complete_verifies_credential_again(self, client, google):
        """Test the credential is checked on the second step too."""
        response = client.post(
            "/api/auth/google/complete",
            json={"credential": "forged", "newUsername": "someone"},
        )
        assert response.status_code == 401
        assert google.calls == ["forged"]

    def test_complete_with_taken_username(self, client, google, make_user):
        """Test the chosen username must be free."""
        make_user("carol", "carol@example.com")
        google.register("tok-carol", sub="g-carol", email="carol@gmail.com")

        response = client.post(
            "/api/auth/google/complete",
            json={"credential": "tok-carol", "newUsername": "carol"},
        )
        assert response.status_code == 409

    def test_complete_renames_existing_account(self, client, google):
        """Test completing for an email that already has an account renames it."""
        google.register("tok-dan", sub="g-dan", email="dan@gmail.com")
        created = client.post("/api/auth/google", json={"credential": "tok-dan"}).json()

        response = client.post(
            "/api/auth/google/complete",
            json={"credential": "tok-dan", "newUsername": "daniel"},
        )
        assert response.status_code == 200
        assert response.json()["_id"] == created["_id"]
        assert response.json()["userName"] == "daniel"

    def test_complete_after_google_email_change(self, client, google):
        """Test completing with a changed Google email renames the linked account."""
        google.register("tok-old", sub="g-2", email="erin@gmail.com")
        google.register("tok-new", sub="g-2", email="erin@work.com")
        created = client.post("/api/auth/google", json={"credential": "tok-old"}).json()

        response = client.post(
            "/api/auth/google/complete",
            json={"credential": "tok-new", "newUsername": "erin_w"},
        )
        assert response.status_code == 200
        assert response.json()["_id"] == created["_id"]
        assert response.json()["userName"] == "erin_w"

    @pytest.mark.parametrize(
        "body", [{}, {"credential": "tok"}, {"newUsername": "someone"}]
    )
    def test_complete_requires_both_fields(self, client, body):
        """Test both credential and username are required."""
        response = client.post("/api/auth/google/complete", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Credential and newUsername are required."
