"""Unit tests for caller identity verification."""
import httpx
import pytest
from conftest import mock_client

from lexa.errors import AuthenticationError
from lexa.server import StaticTokenVerifier, SupabaseIdentityVerifier, bearer_token


class TestBearerToken:
    """Tests for Authorization header parsing."""

    def test_valid(self):
        assert bearer_token("Bearer abc.def") == "abc.def"
        assert bearer_token("bearer   abc ") == "abc"

    @pytest.mark.parametrize("header", [None, ""])
    def test_missing(self, header):
        with pytest.raises(AuthenticationError, match="Missing"):
            bearer_token(header)

    @pytest.mark.parametrize("header", ["Basic abc", "Bearer", "Bearer    ", "abc"])
    def test_invalid(self, header):
        with pytest.raises(AuthenticationError, match="Invalid"):
            bearer_token(header)


class TestStaticTokenVerifier:
    """Tests for the static token verifier."""

    @pytest.mark.asyncio
    async def test_known_token(self):
        verifier = StaticTokenVerifier.from_list(["alpha", "beta"])
        identity = await verifier.verify("beta")
        assert identity.id == "token-user-2"

    @pytest.mark.asyncio
    async def test_unknown_token(self):
        verifier = StaticTokenVerifier({"alpha": "user-1"})
        with pytest.raises(AuthenticationError):
            await verifier.verify("alphabet")

    @pytest.mark.asyncio
    async def test_no_tokens_rejects_everything(self):
        with pytest.raises(AuthenticationError):
            await StaticTokenVerifier({}).verify("anything")


class TestSupabaseIdentityVerifier:
    """Tests for the Supabase identity verifier."""

    @pytest.mark.asyncio
    async def test_valid_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200, json={"id": "u-42", "email": "a@example.com"})

        verifier = SupabaseIdentityVerifier(
            "https://project.supabase.co/", "anon", client=mock_client(handler)
        )
        identity = await verifier.verify("jwt")

        assert identity.id == "u-42"
        assert identity.email == "a@example.com"
        assert seen == {
            "url": "https://project.supabase.co/auth/v1/user",
            "apikey": "anon",
            "auth": "Bearer jwt",
        }

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"msg": "invalid JWT"})

        verifier = SupabaseIdentityVerifier("https://p.supabase.co", "anon", client=mock_client(handler))
        with pytest.raises(AuthenticationError, match="Invalid or expired"):
            await verifier.verify("jwt")

    @pytest.mark.asyncio
    async def test_unreachable_service_fails_closed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        verifier = SupabaseIdentityVerifier("https://p.supabase.co", "anon", client=mock_client(handler))
        with pytest.raises(AuthenticationError, match="Unable to verify"):
            await verifier.verify("jwt")
