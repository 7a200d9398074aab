"""Tests for the backend wire schemas and the registration form."""

import pytest
from pydantic import ValidationError

from oriontv.api.schemas import (
    AuthorizeLinkPayload,
    LoginResponsePayload,
    RegisterResponsePayload,
    RegistrationForm,
    ServerConfigPayload,
    parse_user,
)
from oriontv.domain.entities import UserRole


class TestServerConfigPayload:
    def test_full_payload(self) -> None:
        config = ServerConfigPayload.model_validate(
            {
                "SiteName": "OrionTV",
                "StorageType": "kvrocks",
                "LinuxDoOAuth": {
                    "enabled": True,
                    "authorizeUrl": "https://connect.linux.do/oauth2/authorize",
                    "autoRegister": True,
                    "defaultRole": "admin",
                },
                "Announcement": "ignored",
            }
        ).to_entity()

        assert config.storage_mode == "kvrocks"
        assert config.oauth is not None
        assert config.oauth.auto_register is True
        assert config.oauth.default_role is UserRole.ADMIN

    def test_empty_storage_type_becomes_none(self) -> None:
        config = ServerConfigPayload.model_validate({"StorageType": ""}).to_entity()

        assert config.storage_mode is None
        assert config.oauth is None


class TestResponsePayloads:
    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"ok": True}, True),
            ({"ok": False}, False),
            ({"success": True}, True),
            ({}, True),
            ({"error": "nope"}, False),
        ],
    )
    def test_login_is_ok(self, body: dict, expected: bool) -> None:
        assert LoginResponsePayload.model_validate(body).is_ok is expected

    def test_register_success_shape(self) -> None:
        payload = RegisterResponsePayload.model_validate(
            {"success": True, "needsApproval": True}
        )

        assert payload.is_ok is True
        assert payload.needs_approval is True
        assert payload.failure_reason is None

    def test_register_failure_reason_falls_back_to_message(self) -> None:
        payload = RegisterResponsePayload.model_validate({"ok": False, "message": "closed"})

        assert payload.is_ok is False
        assert payload.failure_reason == "closed"

    def test_authorize_link_prefers_url(self) -> None:
        payload = AuthorizeLinkPayload.model_validate(
            {"url": "https://a.linux.do", "authorizeUrl": "https://b.linux.do"}
        )

        assert payload.link == "https://a.linux.do"


class TestParseUser:
    def test_full_user(self) -> None:
        user = parse_user(
            {"username": "bob", "role": "owner", "linuxdoId": 7, "linuxdoUsername": "bob_ld"}
        )

        assert user is not None
        assert user.name == "bob"
        assert user.role is UserRole.OWNER
        assert user.external_id == 7
        assert user.external_username == "bob_ld"

    @pytest.mark.parametrize("raw", [None, {}, {"role": "user"}, {"username": "x", "role": "god"}])
    def test_unusable(self, raw: dict | None) -> None:
        assert parse_user(raw) is None


class TestRegistrationForm:
    def test_valid_form_strips_username(self) -> None:
        form = RegistrationForm(username="  alice ", password="secret1", confirm_password="secret1")

        assert form.username == "alice"

    def test_blank_username(self) -> None:
        with pytest.raises(ValidationError, match="Please enter a username"):
            RegistrationForm(username="  ", password="secret1", confirm_password="secret1")

    def test_short_password(self) -> None:
        with pytest.raises(ValidationError):
            RegistrationForm(username="alice", password="123", confirm_password="123")

    def test_passwords_must_match(self) -> None:
        with pytest.raises(ValidationError, match="do not match"):
            RegistrationForm(username="alice", password="secret1", confirm_password="secret2")
