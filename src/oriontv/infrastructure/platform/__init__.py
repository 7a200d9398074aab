"""Platform adapters (browser, OS hooks)."""

from oriontv.infrastructure.platform.browser import ManualLinkOpener, SystemBrowserOpener

__all__ = ["ManualLinkOpener", "SystemBrowserOpener"]
