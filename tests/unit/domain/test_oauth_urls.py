"""Tests for callback deep-link parsing and authorization link validation."""

import pytest

from oriontv.domain.exceptions import InvalidAuthorizationLinkError
from oriontv.domain.value_objects.oauth_urls import (
    is_oauth_callback_url,
    parse_callback_url,
    validate_authorization_link,
)


class TestParseCallbackUrl:
    def test_token_callback(self) -> None:
        callback = parse_callback_url("oriontv://oauth/callback?success=true&token=abc")

        assert callback.scheme == "oriontv"
        assert callback.route == "oauth/callback"
        assert callback.has_token is True
        assert callback.credential == "abc"
        assert callback.error is None

    def test_token_without_success_flag_is_not_usable(self) -> None:
        callback = parse_callback_url("oriontv://oauth/callback?token=abc")

        assert callback.has_token is False
        assert callback.credential is None

    def test_code_callback(self) -> None:
        callback = parse_callback_url("oriontv://oauth/callback?code=xyz&state=123")

        assert callback.has_code is True
        assert callback.credential == "xyz"

    def test_error_is_percent_decoded(self) -> None:
        callback = parse_callback_url(
            "oriontv://oauth/callback?error=access%20denied&error_description=user%20said%20no"
        )

        assert callback.error == "access denied"
        assert callback.error_text == "access denied: user said no"

    def test_first_value_wins(self) -> None:
        callback = parse_callback_url("oriontv://oauth/callback?code=a&code=b&state=s")

        assert callback.code == "a"

    @pytest.mark.parametrize("url", ["", "   ", "no scheme here", "http://host:notaport/x"])
    def test_unparseable(self, url: str) -> None:
        with pytest.raises(InvalidAuthorizationLinkError):
            parse_callback_url(url)


class TestIsOAuthCallbackUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("oriontv://oauth/callback", True),
            ("OrionTV://oauth/callback/", True),
            ("https://tv.example.com/app/oauth/callback", True),
            ("oriontv://settings?state=1", True),
            ("oriontv://settings", False),
            ("https://tv.example.com/oauth", False),
            ("https://tv.example.com/oauth/callbackfoo", False),
            ("https://tv.example.com/myoauth/callback", False),
            ("https://tv.example.com/oauth/callback/done", True),
            ("garbage", False),
        ],
    )
    def test_classification(self, url: str, expected: bool) -> None:
        assert is_oauth_callback_url(url, "oriontv", "oauth/callback") is expected


class TestValidateAuthorizationLink:
    def test_provider_host(self) -> None:
        link = " https://linux.do/oauth2/authorize?client_id=abc "

        assert validate_authorization_link(link, "linux.do") == link.strip()

    def test_subdomain_is_accepted(self) -> None:
        link = "https://connect.linux.do/oauth2/authorize"

        assert validate_authorization_link(link, "linux.do") == link

    @pytest.mark.parametrize(
        "link",
        [
            "",
            "/oauth2/authorize",
            "javascript:alert(1)",
            "ftp://linux.do/file",
            "https://evil.example/oauth2/authorize",
            "https://notlinux.do/oauth2/authorize",
            "https://linux.do.evil.example/",
        ],
    )
    def test_rejected(self, link: str) -> None:
        with pytest.raises(InvalidAuthorizationLinkError):
            validate_authorization_link(link, "linux.do")
