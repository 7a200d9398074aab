"""Routes incoming app URLs to the session service.

Hey future me - the OS hands us URLs two ways: as a live event while the app
is running, and as the launch URL when the app was started BY the link (cold
launch). Both must be classified and handled the same way, the only
difference is that a cold launch waits a moment so the rest of the app
(server config, stored server address) can come up first.
"""

import asyncio
import logging

from oriontv.application.services.session_service import SessionService
from oriontv.config.settings import DeepLinkSettings
from oriontv.domain.value_objects import is_oauth_callback_url
from oriontv.infrastructure.retry import interruptible_sleep

logger = logging.getLogger(__name__)


class DeepLinkRouter:
    """Classify URLs and dispatch OAuth callbacks."""

    def __init__(
        self, session_service: SessionService, settings: DeepLinkSettings | None = None
    ) -> None:
        self._session = session_service
        self._settings = settings or DeepLinkSettings()
        self._closing = asyncio.Event()
        self._deferred: set[asyncio.Task[bool | None]] = set()

    def is_oauth_callback(self, url: str) -> bool:
        return is_oauth_callback_url(url, self._settings.app_scheme, self._settings.callback_path)

    async def handle_url(self, url: str) -> bool | None:
        """Handle a live deep-link event.

        Returns:
            The callback outcome, or None when the URL is not an OAuth callback
        """
        if not self.is_oauth_callback(url):
            logger.debug("Ignoring non-callback deep link %s", url)
            return None
        logger.info("Dispatching OAuth callback deep link")
        return await self._session.complete_oauth_callback(url)

    def handle_initial_url(self, url: str | None) -> asyncio.Task[bool | None] | None:
        """Schedule handling of the URL the app was launched with.

        Returns:
            The deferred dispatch task, or None when there is nothing to dispatch
        """
        if not url or not self.is_oauth_callback(url):
            if url:
                logger.debug("Launch URL is not an OAuth callback: %s", url)
            return None

        task = asyncio.create_task(self._dispatch_later(url), name="deep-link-cold-launch")
        self._deferred.add(task)
        task.add_done_callback(self._deferred.discard)
        return task

    async def _dispatch_later(self, url: str) -> bool | None:
        if await interruptible_sleep(self._settings.cold_launch_delay, self._closing):
            logger.info("Router closed before the launch URL was dispatched")
            return None
        return await self.handle_url(url)

    async def aclose(self) -> None:
        """Drop pending cold-launch dispatches."""
        self._closing.set()
        pending = [task for task in self._deferred if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
