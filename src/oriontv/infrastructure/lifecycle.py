"""Application lifecycle: wiring of the session sync and graceful shutdown.

This is the composition root. Nothing else in the package constructs
adapters; services get their collaborators from here (or from test fakes).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from http.cookiejar import CookieJar

import httpx

from oriontv.application.services.deep_link_router import DeepLinkRouter
from oriontv.application.services.notification_service import NotificationService
from oriontv.application.services.server_config_service import ServerConfigService
from oriontv.application.services.session_service import SessionService
from oriontv.config import Settings, get_settings
from oriontv.domain.ports import IBrowserOpener
from oriontv.infrastructure.cookies import HttpxCookieStore
from oriontv.infrastructure.integrations.auth_api_client import AuthApiClient
from oriontv.infrastructure.notifications import InAppNotificationProvider
from oriontv.infrastructure.observability import configure_logging
from oriontv.infrastructure.platform import ManualLinkOpener, SystemBrowserOpener

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Every long-lived object of a running client."""

    settings: Settings
    api: AuthApiClient
    cookies: HttpxCookieStore
    server_config: ServerConfigService
    toasts: InAppNotificationProvider
    notifications: NotificationService
    browser: IBrowserOpener
    session: SessionService
    deep_links: DeepLinkRouter

    async def set_server(self, base_url: str | None) -> None:
        """Point the client at another server, reload its config and re-check the session."""
        self.api.set_base_url(base_url)
        self.server_config.reset()
        if self.api.base_url:
            await self.server_config.load()
        await self.session.check_session(self.api.base_url)

    async def aclose(self) -> None:
        """Stop deferred work first, then release the HTTP client."""
        await self.deep_links.aclose()
        await self.session.aclose()
        await self.api.close()
        logger.info("Session sync shut down")


# Hey future me, the cookie jar is created HERE and handed to both the HTTP client and the
# cookie store. That shared jar is the whole trick: Set-Cookie from the token exchange
# lands in it, and the session service's cookie poll reads it. Two jars = OAuth never
# completes.
def build_runtime(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    browser: IBrowserOpener | None = None,
) -> Runtime:
    """Construct and wire all components (no I/O happens here).

    Args:
        settings: Settings to use (process-wide settings if None)
        transport: Optional httpx transport, for tests
        browser: Optional opener overriding the one chosen from settings
    """
    settings = settings or get_settings()

    jar = CookieJar()
    api = AuthApiClient(settings.server, cookie_jar=jar, transport=transport)
    cookies = HttpxCookieStore(jar)
    server_config = ServerConfigService(api)
    toasts = InAppNotificationProvider()
    notifications = NotificationService([toasts])
    if browser is None:
        browser = SystemBrowserOpener() if settings.auth.external_browser else ManualLinkOpener()

    session = SessionService(
        api=api,
        cookies=cookies,
        server_config=server_config,
        notifications=notifications,
        browser=browser,
        settings=settings.auth,
    )
    deep_links = DeepLinkRouter(session, settings.deep_link)

    return Runtime(
        settings=settings,
        api=api,
        cookies=cookies,
        server_config=server_config,
        toasts=toasts,
        notifications=notifications,
        browser=browser,
        session=session,
        deep_links=deep_links,
    )


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    initial_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[Runtime, None]:
    """Run the session sync for the lifetime of the app.

    Startup: logging, wiring, server config load, first session check, and the
    cold-launch URL (if the app was opened by a deep link). Shutdown always
    releases the runtime, even when startup failed halfway.
    """
    settings = settings or get_settings()
    configure_logging(
        log_level=settings.log.level,
        json_format=settings.log.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting %s", settings.app_name)

    runtime = build_runtime(settings, transport=transport)
    try:
        base_url = runtime.api.base_url
        if base_url:
            await runtime.server_config.load()
            await runtime.session.check_session(base_url)
        else:
            logger.info("No server address configured yet, skipping session check")
        runtime.deep_links.handle_initial_url(initial_url)
        yield runtime
    finally:
        await runtime.aclose()
