"""Shared fixtures: fakes for every port the session service talks to."""

from unittest.mock import AsyncMock

import pytest
from fakes import (
    AUTHORIZE_LINK,
    ORIGIN,
    FakeCookieStore,
    FakeServerConfigSource,
    cookie_config,
)

from oriontv.application.services.notification_service import NotificationService
from oriontv.application.services.session_service import SessionService
from oriontv.config.settings import AuthSettings, DeepLinkSettings
from oriontv.domain.ports import IAuthApiClient, IBrowserOpener
from oriontv.domain.value_objects import ApiResult, RegistrationOutcome, TokenExchangeOutcome
from oriontv.infrastructure.notifications import InAppNotificationProvider


@pytest.fixture
def auth_settings() -> AuthSettings:
    """Auth settings with zero poll delay so tests don't sleep."""
    return AuthSettings(
        cookie_poll_attempts=8,
        cookie_poll_delay=0.0,
        config_wait_timeout=0.05,
        config_wait_interval=0.01,
    )


@pytest.fixture
def deep_link_settings() -> DeepLinkSettings:
    return DeepLinkSettings(app_scheme="oriontv", cold_launch_delay=0.01)


@pytest.fixture
def cookies() -> FakeCookieStore:
    return FakeCookieStore()


@pytest.fixture
def config_source() -> FakeServerConfigSource:
    return FakeServerConfigSource(cookie_config())


@pytest.fixture
def api() -> AsyncMock:
    """IAuthApiClient mock answering every call with success."""
    mock = AsyncMock(spec=IAuthApiClient)
    mock.base_url = ORIGIN
    mock.login.return_value = ApiResult.success()
    mock.logout.return_value = ApiResult.success()
    mock.register.return_value = ApiResult.success(RegistrationOutcome())
    mock.start_oauth.return_value = ApiResult.success(AUTHORIZE_LINK)
    mock.exchange_token.return_value = ApiResult.success(TokenExchangeOutcome(cookie="abc"))
    mock.oauth_callback.return_value = ApiResult.success(TokenExchangeOutcome())
    return mock


@pytest.fixture
def browser() -> AsyncMock:
    mock = AsyncMock(spec=IBrowserOpener)
    mock.can_open.return_value = True
    mock.open.return_value = True
    return mock


@pytest.fixture
def toasts() -> InAppNotificationProvider:
    return InAppNotificationProvider()


@pytest.fixture
def notifications(toasts: InAppNotificationProvider) -> NotificationService:
    return NotificationService([toasts])


@pytest.fixture
def service(
    api: AsyncMock,
    cookies: FakeCookieStore,
    config_source: FakeServerConfigSource,
    notifications: NotificationService,
    browser: AsyncMock,
    auth_settings: AuthSettings,
) -> SessionService:
    return SessionService(
        api=api,
        cookies=cookies,
        server_config=config_source,
        notifications=notifications,
        browser=browser,
        settings=auth_settings,
    )
