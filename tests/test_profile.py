"""Tests for JWT claim decoding and the cached user profile."""
from utils.jwt_utils import decode_jwt, extract_scopes
from utils.profile import UserProfile

from conftest import make_jwt


class TestDecodeJwt:
    def test_decodes_payload(self):
        assert decode_jwt(make_jwt({"tid": "t-1"})) == {"tid": "t-1"}

    def test_opaque_token(self):
        assert decode_jwt("not-a-jwt") is None

    def test_garbage_payload(self):
        assert decode_jwt("a.!!!.c") is None

    def test_scopes(self):
        assert extract_scopes({"scp": "User.Read offline_access"}) == ["User.Read", "offline_access"]
        assert extract_scopes({}) == []


class TestUserProfile:
    def test_from_access_token(self):
        token = make_jwt({
            "name": "Ada Admin",
            "preferred_username": "ada@contoso.com",
            "tid": "tenant-123",
            "scp": "User.Read Directory.ReadWrite.All",
            "iat": 0,
        })

        profile = UserProfile.from_access_token(token)

        assert profile.name == "Ada Admin"
        assert profile.email == "ada@contoso.com"
        assert profile.tenant_id == "tenant-123"
        assert profile.scopes == ["User.Read", "Directory.ReadWrite.All"]
        assert profile.last_login == "1970-01-01 00:00:00 UTC"

    def test_upn_fallback_and_defaults(self):
        profile = UserProfile.from_access_token(make_jwt({"upn": "bob@contoso.com"}))
        assert profile.email == "bob@contoso.com"
        assert profile.name == "Unknown User"
        assert profile.tenant_id == "Unknown Tenant"
        assert profile.last_login == "Now"

    def test_opaque_token(self):
        assert UserProfile.from_access_token("opaque") is None

    def test_save_and_load(self, workspace):
        UserProfile("Ada", "ada@contoso.com", "t-1", ["User.Read"], "2024-01-01 00:00:00 UTC").save()

        assert (workspace / "cli" / ".o365_cli_profile.json").exists()
        assert UserProfile.load() == UserProfile("Ada", "ada@contoso.com", "t-1", ["User.Read"], "2024-01-01 00:00:00 UTC")

    def test_load_missing(self):
        assert UserProfile.load() is None

    def test_load_corrupt(self, workspace):
        path = workspace / "cli" / ".o365_cli_profile.json"
        path.parent.mkdir()
        path.write_text("{not json")
        assert UserProfile.load() is None

    def test_clear(self, workspace):
        UserProfile("Ada", "ada@contoso.com", "t-1").save()
        UserProfile.clear()
        UserProfile.clear()
        assert UserProfile.load() is None
