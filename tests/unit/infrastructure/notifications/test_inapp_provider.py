"""Tests for the in-app toast provider."""

from oriontv.domain.ports.notification import (
    Notification,
    NotificationLevel,
    NotificationType,
)
from oriontv.infrastructure.notifications import InAppNotificationProvider


def toast(title: str = "Invalid link") -> Notification:
    return Notification(
        type=NotificationType.INVALID_LINK,
        level=NotificationLevel.ERROR,
        title=title,
        message="Link is not an absolute URL",
    )


class TestInAppNotificationProvider:
    async def test_supports_every_type(self) -> None:
        provider = InAppNotificationProvider()

        assert provider.name == "inapp"
        assert all(provider.supports(t) for t in NotificationType)
        assert await provider.is_configured() is True

    async def test_send_queues_toast(self) -> None:
        provider = InAppNotificationProvider()

        result = await provider.send(toast())

        assert result.success is True
        assert result.provider_name == "inapp"
        assert result.notification_type is NotificationType.INVALID_LINK
        assert [n.text for n in provider.pending] == [
            "Invalid link: Link is not an absolute URL"
        ]

    async def test_queue_is_bounded(self) -> None:
        provider = InAppNotificationProvider(max_count=2)

        for title in ("one", "two", "three"):
            await provider.send(toast(title))

        assert [n.title for n in provider.pending] == ["two", "three"]

    async def test_pop_all_drains(self) -> None:
        provider = InAppNotificationProvider()
        await provider.send(toast())

        assert len(provider.pop_all()) == 1
        assert provider.pending == []

    async def test_disabled_provider_fails(self) -> None:
        provider = InAppNotificationProvider(enabled=False)

        result = await provider.send(toast())

        assert await provider.is_configured() is False
        assert result.success is False
        assert result.error == "In-app notifications disabled"
        assert provider.pending == []

    async def test_listeners_and_unsubscribe(self) -> None:
        provider = InAppNotificationProvider()
        seen: list[str] = []
        unsubscribe = provider.subscribe(lambda n: seen.append(n.title))

        await provider.send(toast("first"))
        unsubscribe()
        await provider.send(toast("second"))

        assert seen == ["first"]

    async def test_broken_listener_does_not_fail_delivery(self) -> None:
        provider = InAppNotificationProvider()
        seen: list[str] = []

        def broken(_: Notification) -> None:
            raise RuntimeError("UI gone")

        provider.subscribe(broken)
        provider.subscribe(lambda n: seen.append(n.title))

        result = await provider.send(toast())

        assert result.success is True
        assert seen == ["Invalid link"]

    def test_notification_text_without_message(self) -> None:
        notification = Notification(
            type=NotificationType.OAUTH_STARTED,
            level=NotificationLevel.INFO,
            title="Continue in the browser",
        )

        assert notification.text == "Continue in the browser"
        assert notification.timestamp is not None
