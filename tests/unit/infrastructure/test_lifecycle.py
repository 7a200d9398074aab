"""Tests for runtime wiring and the app lifespan."""

import asyncio

import httpx
import pytest

from oriontv.config import AuthSettings, DeepLinkSettings, ServerSettings, Settings
from oriontv.domain.entities import OAuthPhase
from oriontv.infrastructure.lifecycle import build_runtime, lifespan
from oriontv.infrastructure.platform import ManualLinkOpener, SystemBrowserOpener

ORIGIN = "http://tv.local:3000"


def make_settings(base_url: str | None = ORIGIN, external_browser: bool = False) -> Settings:
    return Settings(
        server=ServerSettings(api_base_url=base_url),
        auth=AuthSettings(
            cookie_poll_attempts=2,
            cookie_poll_delay=0.0,
            config_wait_timeout=0.05,
            config_wait_interval=0.01,
            external_browser=external_browser,
        ),
        deep_link=DeepLinkSettings(cold_launch_delay=0.0),
    )


def backend(request: httpx.Request) -> httpx.Response:
    """Minimal cookie-mode server."""
    if request.url.path == "/api/server-config":
        return httpx.Response(200, json={"SiteName": "OrionTV", "StorageType": "redis"})
    if request.url.path == "/api/oauth/exchange-token":
        return httpx.Response(
            200,
            json={"success": True, "cookie": "abc", "user": {"username": "bob"}},
            headers={"Set-Cookie": "auth=abc; Path=/"},
        )
    return httpx.Response(404)


class TestBuildRuntime:
    async def test_api_and_cookie_store_share_one_jar(self) -> None:
        runtime = build_runtime(make_settings(), transport=httpx.MockTransport(backend))
        try:
            result = await runtime.api.exchange_token("tok")

            assert result.ok is True
            assert await runtime.cookies.get(ORIGIN) == {"auth": "abc"}
        finally:
            await runtime.aclose()

    def test_browser_choice_follows_settings(self) -> None:
        assert isinstance(
            build_runtime(make_settings(external_browser=True)).browser, SystemBrowserOpener
        )
        assert isinstance(
            build_runtime(make_settings(external_browser=False)).browser, ManualLinkOpener
        )

    async def test_set_server_reloads_config_and_checks(self) -> None:
        runtime = build_runtime(make_settings(base_url=None), transport=httpx.MockTransport(backend))
        try:
            await runtime.set_server(f"{ORIGIN}/")

            assert runtime.api.base_url == ORIGIN
            assert runtime.server_config.server_config is not None
            assert runtime.session.state.is_login_prompt_visible is True
        finally:
            await runtime.aclose()


class TestLifespan:
    async def test_startup_checks_session(self) -> None:
        async with lifespan(make_settings(), transport=httpx.MockTransport(backend)) as runtime:
            assert runtime.server_config.server_config is not None
            assert runtime.session.state.is_logged_in is False
            assert runtime.session.state.is_login_prompt_visible is True

    async def test_startup_without_server_skips_check(self) -> None:
        async with lifespan(make_settings(base_url=None)) as runtime:
            assert runtime.server_config.server_config is None
            assert runtime.session.state.is_login_prompt_visible is False

    async def test_cold_launch_callback_is_completed(self) -> None:
        url = "oriontv://oauth/callback?success=true&token=tok"

        async with lifespan(
            make_settings(), initial_url=url, transport=httpx.MockTransport(backend)
        ) as runtime:
            state = runtime.session.state
            for _ in range(200):
                if state.oauth_phase is OAuthPhase.COMPLETED:
                    break
                await asyncio.sleep(0.01)

            assert state.is_logged_in is True
            assert state.oauth_phase is OAuthPhase.COMPLETED
            assert state.current_user is not None
            assert state.current_user.name == "bob"

    async def test_runtime_is_closed_when_body_raises(self) -> None:
        with pytest.raises(RuntimeError):
            async with lifespan(make_settings(), transport=httpx.MockTransport(backend)) as runtime:
                api = runtime.api
                raise RuntimeError("ui crashed")

        assert api._client is None
