"""External browser openers for the OAuth authorization step."""

import asyncio
import logging
import webbrowser

from oriontv.domain.ports import IBrowserOpener

logger = logging.getLogger(__name__)


class SystemBrowserOpener(IBrowserOpener):
    """Opens links with the platform's registered web browser.

    webbrowser.open() can block while it spawns the browser process, so it runs
    in a worker thread to keep the event loop responsive.
    """

    async def can_open(self, url: str) -> bool:
        try:
            webbrowser.get()
        except webbrowser.Error:
            logger.info("No usable web browser registered on this platform")
            return False
        return True

    async def open(self, url: str) -> bool:
        opened = await asyncio.to_thread(webbrowser.open, url, 2)
        if not opened:
            logger.warning("Browser refused to open the authorization link")
        return bool(opened)


class ManualLinkOpener(IBrowserOpener):
    """Opener for devices without a browser - the user copies the link by hand."""

    async def can_open(self, url: str) -> bool:
        return False

    async def open(self, url: str) -> bool:
        return False
