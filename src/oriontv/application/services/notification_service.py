"""Notification service for surfacing session events to the user.

Hey future me - this is the MAIN ENTRY POINT for user-visible messages!
The session service never shows a toast itself; it calls one of the send_*
methods here and this service fans the message out to every configured
provider (in-app toast queue today, anything implementing
INotificationProvider tomorrow).

Usage:
    notifications = NotificationService([InAppNotificationProvider()])
    await notifications.send_oauth_failed("access_denied")

The service will automatically:
1. Build the Notification object
2. Log it (always, even with zero providers)
3. Send to ALL configured providers (parallel)
4. Return whether at least one provider delivered it
"""

import asyncio
import logging
from typing import Any

from oriontv.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationLevel,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """Send notifications through multiple providers.

    Providers are checked with is_configured() lazily on first send and the
    result is cached. Call invalidate_providers() after a provider's settings
    change.
    """

    def __init__(self, providers: list[INotificationProvider] | None = None) -> None:
        """Initialize notification service.

        Args:
            providers: Candidate providers. None or empty means logging-only mode.
        """
        self._candidates: list[INotificationProvider] = list(providers or [])
        self._providers: list[INotificationProvider] | None = None

    async def _init_providers(self) -> list[INotificationProvider]:
        """Return the configured providers (cached)."""
        if self._providers is not None:
            return self._providers

        enabled: list[INotificationProvider] = []
        for provider in self._candidates:
            try:
                if await provider.is_configured():
                    enabled.append(provider)
                    logger.debug("[NOTIFICATION] Provider enabled: %s", provider.name)
            except Exception as e:
                logger.warning(
                    "[NOTIFICATION] Failed to check provider %s: %s", provider.name, e
                )

        self._providers = enabled
        return enabled

    def invalidate_providers(self) -> None:
        """Forget which providers are configured; re-checked on next send."""
        self._providers = None

    def add_provider(self, provider: INotificationProvider) -> None:
        self._candidates.append(provider)
        self.invalidate_providers()

    async def send_notification(
        self,
        notification_type: NotificationType,
        level: NotificationLevel,
        title: str,
        message: str = "",
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send notification to all configured providers.

        Hey future me - this is the CORE method! All other send_* methods call this.

        Returns:
            True if at least one provider succeeded (or no provider is configured,
            in which case logging counts as delivery)
        """
        notification = Notification(
            type=notification_type,
            level=level,
            title=title,
            message=message,
            data=data or {},
        )

        log_level = logging.WARNING if level is NotificationLevel.ERROR else logging.INFO
        logger.log(log_level, "[NOTIFICATION] %s: %s", notification_type.value, notification.text)

        providers = await self._init_providers()
        if not providers:
            logger.debug("[NOTIFICATION] No providers configured, logged only")
            return True

        results = await self._send_to_providers(notification, providers)

        successes = sum(1 for r in results if r.success)
        failed = [r.provider_name for r in results if not r.success]
        if failed:
            logger.warning(
                "[NOTIFICATION] %d/%d providers succeeded, failed: %s",
                successes,
                len(results),
                failed,
            )
        return successes > 0

    async def _send_to_providers(
        self, notification: Notification, providers: list[INotificationProvider]
    ) -> list[NotificationResult]:
        """Send to every provider that supports the type, in parallel."""
        targets = [p for p in providers if p.supports(notification.type)]
        if not targets:
            return []
        return list(
            await asyncio.gather(*(self._send_to_provider(p, notification) for p in targets))
        )

    async def _send_to_provider(
        self, provider: INotificationProvider, notification: Notification
    ) -> NotificationResult:
        """Send to a single provider; its failure never reaches the caller."""
        try:
            return await provider.send(notification)
        except Exception as e:
            logger.error("[NOTIFICATION] Provider %s error: %s", provider.name, e)
            return NotificationResult(
                success=False,
                provider_name=provider.name,
                notification_type=notification.type,
                error=str(e),
            )

    # =========================================================================
    # SESSION EVENTS
    # =========================================================================
    # Hey future me - these are the messages the user actually reads on the TV.
    # Keep the titles short, a toast shows about 40 characters.
    # =========================================================================

    async def send_login_succeeded(self, username: str | None = None) -> bool:
        return await self.send_notification(
            NotificationType.LOGIN_SUCCEEDED,
            NotificationLevel.SUCCESS,
            "Login successful",
            f"Welcome back, {username}" if username else "",
            data={"username": username} if username else None,
        )

    async def send_login_failed(self, reason: str) -> bool:
        return await self.send_notification(
            NotificationType.LOGIN_FAILED, NotificationLevel.ERROR, "Login failed", reason
        )

    async def send_session_lost(self) -> bool:
        return await self.send_notification(
            NotificationType.SESSION_LOST,
            NotificationLevel.INFO,
            "Session expired",
            "Please log in again",
        )

    async def send_registration_succeeded(self, needs_approval: bool) -> bool:
        message = (
            "Your account is waiting for administrator approval"
            if needs_approval
            else "You can log in now"
        )
        return await self.send_notification(
            NotificationType.REGISTRATION_SUCCEEDED,
            NotificationLevel.SUCCESS,
            "Registration successful",
            message,
            data={"needs_approval": needs_approval},
        )

    async def send_registration_failed(self, reason: str) -> bool:
        return await self.send_notification(
            NotificationType.REGISTRATION_FAILED,
            NotificationLevel.ERROR,
            "Registration failed",
            reason,
        )

    async def send_oauth_started(self) -> bool:
        return await self.send_notification(
            NotificationType.OAUTH_STARTED,
            NotificationLevel.INFO,
            "Continue in the browser",
            "Complete the authorization in the browser, then return to the app",
        )

    async def send_oauth_link_pending(self, link: str) -> bool:
        """The browser could not be opened; the UI shows the link instead."""
        return await self.send_notification(
            NotificationType.OAUTH_STARTED,
            NotificationLevel.INFO,
            "Open this link on another device",
            link,
            data={"link": link},
        )

    async def send_oauth_succeeded(self, username: str | None = None) -> bool:
        return await self.send_notification(
            NotificationType.OAUTH_SUCCEEDED,
            NotificationLevel.SUCCESS,
            "Authorization successful",
            f"Logged in as {username}" if username else "",
        )

    async def send_oauth_failed(self, reason: str) -> bool:
        return await self.send_notification(
            NotificationType.OAUTH_FAILED, NotificationLevel.ERROR, "Authorization failed", reason
        )

    async def send_invalid_link(self, reason: str) -> bool:
        return await self.send_notification(
            NotificationType.INVALID_LINK, NotificationLevel.ERROR, "Invalid link", reason
        )

    async def send_configuration_error(self, reason: str | None = None) -> bool:
        return await self.send_notification(
            NotificationType.CONFIGURATION_ERROR,
            NotificationLevel.ERROR,
            "Could not load server configuration",
            reason or "Please check the network or the server address",
        )
