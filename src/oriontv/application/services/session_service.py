"""Session service - reconciles the server's cookie session with local login state.

Hey future me - this is THE core of the session sync. Everything that may flip
``is_logged_in`` goes through here:

- check_session: app start / foreground / server address change
- login / logout / register: the login and registration prompts
- begin_oauth + complete_oauth_callback: the LinuxDo OAuth round trip through
  the external browser and back into the app via deep link
- cancel_oauth: user backed out, or a newer attempt supersedes a stale one

Serialization: ONE asyncio.Lock guards every operation that reads the cookie
store and then writes is_logged_in. Without it a foreground check_session
polling the jar interleaves with an OAuth verification loop polling the same
jar, and whichever finishes last wins. Concurrent check_session callers don't
queue up behind each other, they await the check already running.

Cookie propagation is slow and device dependent, so presence is never read
once: it's polled (see infrastructure/retry.py) with a bounded budget.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from oriontv.api.schemas import parse_user
from oriontv.application.services.notification_service import NotificationService
from oriontv.config.settings import AuthSettings
from oriontv.domain.entities import (
    CurrentUser,
    OAuthPhase,
    SessionListener,
    SessionSnapshot,
    SessionState,
)
from oriontv.domain.exceptions import (
    ConfigurationUnavailableError,
    DomainException,
    ErrorKind,
    InvalidAuthorizationLinkError,
    MissingCallbackParametersError,
    SessionVerificationTimeoutError,
    TokenExchangeError,
)
from oriontv.domain.ports import (
    IAuthApiClient,
    IBrowserOpener,
    ICookieStore,
    IServerConfigSource,
)
from oriontv.domain.value_objects import (
    ApiResult,
    OAuthCallback,
    TokenExchangeOutcome,
    parse_callback_url,
    validate_authorization_link,
)
from oriontv.infrastructure.observability.log_messages import LogMessages
from oriontv.infrastructure.observability.logging import correlation_id_var
from oriontv.infrastructure.retry import PollResult, RetryPolicy, poll_until

logger = logging.getLogger(__name__)


@dataclass
class OAuthAttempt:
    """One run of the OAuth flow, from link fetch (or cold-launch callback) to a terminal phase."""

    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: float = field(default_factory=time.monotonic)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    finished: bool = False

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def active(self) -> bool:
        return not self.finished and not self.cancelled

    @property
    def age(self) -> float:
        return time.monotonic() - self.started_at


class SessionService:
    """Owns SessionState and implements every session state transition.

    Constructed once by the lifecycle wiring; tests build it with fakes for
    each port.
    """

    def __init__(
        self,
        api: IAuthApiClient,
        cookies: ICookieStore,
        server_config: IServerConfigSource,
        notifications: NotificationService,
        browser: IBrowserOpener,
        settings: AuthSettings | None = None,
        state: SessionState | None = None,
    ) -> None:
        self._api = api
        self._cookies = cookies
        self._config_source = server_config
        self._notifications = notifications
        self._browser = browser
        self._settings = settings or AuthSettings()
        self._state = state or SessionState()

        self._lock = asyncio.Lock()
        self._check_task: asyncio.Task[None] | None = None
        self._check_origin: str | None = None
        self._attempt: OAuthAttempt | None = None
        # one-time token/code values already turned into a confirmed session
        self._consumed_credentials: set[str] = set()

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    def snapshot(self) -> SessionSnapshot:
        return self._state.snapshot()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        return self._state.subscribe(listener)

    @property
    def current_attempt(self) -> OAuthAttempt | None:
        """The OAuth attempt still able to change the phase, if any."""
        attempt = self._attempt
        return attempt if attempt is not None and attempt.active else None

    # Prompt toggles are plain UI actions; the two prompts never show together.
    def show_login_prompt(self) -> None:
        self._state.update(is_login_prompt_visible=True, is_registration_prompt_visible=False)

    def hide_login_prompt(self) -> None:
        self._state.update(is_login_prompt_visible=False)

    def show_registration_prompt(self) -> None:
        self._state.update(is_registration_prompt_visible=True, is_login_prompt_visible=False)

    def hide_registration_prompt(self) -> None:
        self._state.update(is_registration_prompt_visible=False)

    # =========================================================================
    # SESSION CHECK
    # =========================================================================

    async def check_session(self, server_endpoint: str | None) -> None:
        """Re-derive is_logged_in for the given server origin.

        Never raises (apart from cancellation of the caller). A check for the same
        origin that is already running is awaited instead of started again.
        """
        origin = server_endpoint.strip().rstrip("/") if server_endpoint else ""

        task = self._check_task
        if task is not None and not task.done() and self._check_origin == origin:
            logger.debug("Session check for %s already running, joining it", origin)
        else:
            task = asyncio.create_task(self._run_check(origin), name="session-check")
            self._check_task = task
            self._check_origin = origin
        # shield: a caller giving up must not abort the check other callers await
        await asyncio.shield(task)

    async def _run_check(self, origin: str) -> None:
        async with self._lock:
            await self._check_locked(origin)

    async def _check_locked(self, origin: str) -> None:
        if not origin:
            self._state.update(
                is_logged_in=False,
                is_login_prompt_visible=False,
                is_registration_prompt_visible=False,
            )
            return

        was_logged_in = self._state.is_logged_in
        try:
            still_loading = await self._wait_for_server_config()
            config = self._config_source.server_config
            if config is None and not still_loading:
                config = await self._config_source.load()

            if config is None or not config.has_storage_mode:
                if still_loading:
                    # normal during startup; a toast here would be a false alarm
                    logger.info("Server config still loading, skipping session check")
                else:
                    logger.warning("Server config has no storage mode, cannot check session")
                    await self._notifications.send_configuration_error()
                return

            poll = await self._poll_auth_cookie(origin)
            if config.uses_cookie_session:
                await self._apply_cookie_result(origin, poll.succeeded, was_logged_in)
            elif poll.succeeded:
                self._state.update(is_logged_in=True)
            else:
                await self._auto_login()
        except DomainException as e:
            self._downgrade_after_error(origin, e.message, e.kind is ErrorKind.UNAUTHORIZED)
        except Exception as e:
            logger.exception("Unexpected error during session check")
            self._downgrade_after_error(origin, str(e), forced_prompt=False)

    async def _wait_for_server_config(self) -> bool:
        """Wait (bounded) while the server config is loading. Returns True if it still is."""
        if not self._config_source.is_loading:
            return False

        async def _loading() -> bool:
            return self._config_source.is_loading

        result = await poll_until(
            _loading,
            lambda loading: not loading,
            RetryPolicy.for_timeout(
                self._settings.config_wait_timeout, self._settings.config_wait_interval
            ),
            label="server config wait",
        )
        return not result.succeeded

    async def _apply_cookie_result(self, origin: str, has_cookie: bool, was_logged_in: bool) -> None:
        if has_cookie:
            # logged in: never hide a prompt here, only an explicit action does that
            self._state.update(is_logged_in=True)
            return

        if was_logged_in:
            logger.warning(LogMessages.session_lost(origin))
            self._state.update(
                is_logged_in=False, current_user=None, is_login_prompt_visible=True
            )
            await self._notifications.send_session_lost()
        elif not self._state.is_login_prompt_visible:
            self._state.update(is_logged_in=False, is_login_prompt_visible=True)
        else:
            self._state.update(is_logged_in=False)

    async def _auto_login(self) -> None:
        """Local storage mode: credential-less login."""
        result = await self._api.login()
        if result.ok:
            logger.info("Local storage mode auto-login succeeded")
            self._state.update(is_logged_in=True)
            return
        if result.error_kind is ErrorKind.NETWORK_UNAVAILABLE:
            # a network blip must not pop the login prompt over the player
            self._downgrade_after_error(
                self._api.base_url or "", result.error or "network unavailable", False
            )
            return
        logger.info("Local storage mode auto-login refused: %s", result.error)
        self._state.update(is_logged_in=False, is_login_prompt_visible=True)

    def _downgrade_after_error(self, origin: str, error: str, forced_prompt: bool) -> None:
        logger.warning(LogMessages.session_check_failed(origin, error, forced_prompt))
        if forced_prompt:
            self._state.update(is_logged_in=False, is_login_prompt_visible=True)
        else:
            self._state.update(is_logged_in=False)

    async def _poll_auth_cookie(
        self, origin: str, cancel_event: asyncio.Event | None = None
    ) -> PollResult[dict[str, str]]:
        cookie_name = self._settings.cookie_name
        return await poll_until(
            lambda: self._cookies.get(origin),
            lambda cookies: bool(cookies.get(cookie_name)),
            RetryPolicy(
                max_attempts=self._settings.cookie_poll_attempts,
                delay=self._settings.cookie_poll_delay,
            ),
            cancel_event=cancel_event,
            label=f"{cookie_name} cookie poll",
        )

    # =========================================================================
    # LOGIN / LOGOUT / REGISTER
    # =========================================================================

    async def login(self, username: str | None = None, password: str | None = None) -> bool:
        """Log in with credentials (or without, in local storage mode).

        Returns:
            True once the session is confirmed
        """
        async with self._lock:
            result = await self._api.login(username, password)
            if not result.ok:
                if result.error_kind is ErrorKind.UNAUTHORIZED:
                    self._state.update(is_logged_in=False)
                await self._notifications.send_login_failed(result.error or "Login failed")
                return False

            config = self._config_source.server_config
            local_mode = (
                config is not None and config.has_storage_mode and not config.uses_cookie_session
            )
            if not local_mode:
                origin = self._api.base_url or ""
                poll = await self._poll_auth_cookie(origin)
                if not poll.succeeded:
                    logger.warning(
                        "Login accepted by %s but no %s cookie after %d attempts",
                        origin,
                        self._settings.cookie_name,
                        poll.attempts,
                    )
                    self._state.update(is_logged_in=False)
                    await self._notifications.send_login_failed(
                        "The session could not be confirmed, please try again"
                    )
                    return False

            user = CurrentUser(name=username) if username else self._state.current_user
            self._state.update(
                is_logged_in=True, is_login_prompt_visible=False, current_user=user
            )
        await self._notifications.send_login_succeeded(username)
        return True

    async def logout(self) -> None:
        """Log out. Always ends logged out with the login prompt shown."""
        self.cancel_oauth("logout")
        async with self._lock:
            try:
                result = await self._api.logout()
                if not result.ok:
                    logger.warning("Server logout failed (%s), clearing local session anyway", result.error)
            except Exception:
                logger.exception("Logout request raised, clearing local session anyway")

            try:
                await self._cookies.clear_all()
            finally:
                self._state.update(
                    is_logged_in=False,
                    is_login_prompt_visible=True,
                    current_user=None,
                    oauth_phase=OAuthPhase.IDLE,
                )
        logger.info("Logged out")

    async def register(self, username: str, password: str, confirm_password: str) -> bool:
        """Create an account. Input validation happens in RegistrationForm.

        Returns:
            True when the server accepted the registration (approval pending or not)
        """
        async with self._lock:
            try:
                result = await self._api.register(username, password, confirm_password)
            except Exception:
                logger.exception("Registration request raised")
                await self._notifications.send_registration_failed(
                    "Registration failed, please try again later"
                )
                return False

            if result.ok:
                needs_approval = bool(result.value and result.value.needs_approval)
                self._state.update(
                    is_registration_prompt_visible=False, is_login_prompt_visible=True
                )
                logger.info("Registered %s (needs approval: %s)", username, needs_approval)
                await self._notifications.send_registration_succeeded(needs_approval)
                return True

            if result.error_kind is ErrorKind.NETWORK_UNAVAILABLE:
                reason = "Registration failed, please check the network"
            else:
                reason = result.error or "Registration failed"
            await self._notifications.send_registration_failed(reason)
            return False

    # =========================================================================
    # OAUTH
    # =========================================================================

    def _provider_domain(self) -> str:
        config = self._config_source.server_config
        if config is not None and config.oauth is not None and config.oauth.provider_domain:
            return config.oauth.provider_domain
        return self._settings.identity_provider_domain

    async def begin_oauth(self, restart: bool = False) -> bool:
        """Start (or reuse) an OAuth attempt and hand the link to the browser.

        Returns:
            True while the flow is live (browser opened, or link shown for manual
            copy), False when the attempt failed or was cancelled meanwhile
        """
        current = self.current_attempt
        if current is not None and self._state.oauth_phase.is_in_flight:
            stale = current.age > self._settings.oauth_attempt_ttl
            if not restart and not stale:
                logger.info(
                    "OAuth attempt %s already in %s, reusing it",
                    current.attempt_id,
                    self._state.oauth_phase.value,
                )
                return True
            self.cancel_oauth("restart requested" if restart else "stale attempt superseded")

        attempt = OAuthAttempt()
        self._attempt = attempt
        token = correlation_id_var.set(attempt.attempt_id)
        try:
            # set synchronously, so a second begin_oauth already sees the attempt
            self._state.update(
                oauth_phase=OAuthPhase.AUTHORIZATION_REQUESTED, pending_authorization_link=None
            )
            return await self._run_authorization(attempt)
        except DomainException as e:
            await self._fail_attempt(attempt, e.message)
            return False
        except Exception as e:
            logger.exception("Unexpected error while starting OAuth")
            await self._fail_attempt(attempt, str(e) or e.__class__.__name__)
            return False
        finally:
            correlation_id_var.reset(token)

    async def _run_authorization(self, attempt: OAuthAttempt) -> bool:
        async with self._lock:
            if not attempt.active:
                return False
            result = await self._api.start_oauth()
        if not attempt.active:
            return False
        if not result.ok or not result.value:
            if result.error_kind is ErrorKind.INVALID_AUTHORIZATION_LINK:
                raise InvalidAuthorizationLinkError(result.error or "No authorization link")
            await self._fail_attempt(attempt, result.error or "Could not start authorization")
            return False

        link = validate_authorization_link(result.value, self._provider_domain())
        self._state.update(oauth_phase=OAuthPhase.AWAITING_EXTERNAL_BROWSER)

        opened = False
        try:
            if await self._browser.can_open(link):
                opened = await self._browser.open(link)
        except Exception:
            logger.warning("External browser failed to open the authorization link", exc_info=True)

        if attempt.cancelled:
            return False
        # the callback may have landed while the browser was opening
        if self._state.oauth_phase is not OAuthPhase.AWAITING_EXTERNAL_BROWSER:
            return self._state.oauth_phase is not OAuthPhase.FAILED

        if opened:
            self._state.update(
                oauth_phase=OAuthPhase.AWAITING_CALLBACK, pending_authorization_link=None
            )
            await self._notifications.send_oauth_started()
        else:
            logger.info("No external browser available, showing the authorization link")
            self._state.update(pending_authorization_link=link)
            await self._notifications.send_oauth_link_pending(link)
        return True

    def cancel_oauth(self, reason: str = "cancelled") -> bool:
        """Cancel the in-flight attempt; its polling stops at the next wait.

        Returns:
            True if there was an attempt to cancel
        """
        attempt = self.current_attempt
        if attempt is None:
            return False

        attempt.cancel_event.set()
        if self._state.oauth_phase.is_in_flight:
            self._state.update(oauth_phase=OAuthPhase.IDLE, pending_authorization_link=None)
        logger.info("OAuth attempt %s cancelled: %s", attempt.attempt_id, reason)
        return True

    async def complete_oauth_callback(self, url: str) -> bool:
        """Finish OAuth from a deep link (live event or cold launch).

        Returns:
            True only when the server session is confirmed locally
        """
        try:
            callback = parse_callback_url(url)
        except InvalidAuthorizationLinkError as e:
            # an unrelated broken link says nothing about the running attempt
            logger.warning("Ignoring unparseable OAuth callback: %s", e.message)
            await self._notifications.send_invalid_link(e.message)
            return False

        credential = callback.credential
        if credential is not None and credential in self._consumed_credentials:
            logger.info("OAuth callback already handled, ignoring duplicate delivery")
            return True

        async with self._lock:
            # a duplicate may have waited on the lock while the first one finished
            if credential is not None and credential in self._consumed_credentials:
                logger.info("OAuth callback already handled, ignoring duplicate delivery")
                return True

            attempt = self.current_attempt
            if attempt is None:
                attempt = OAuthAttempt()
                self._attempt = attempt
                logger.info("OAuth callback without a running attempt (cold launch), adopting it")

            token = correlation_id_var.set(attempt.attempt_id)
            try:
                return await self._handle_callback(attempt, callback)
            except SessionVerificationTimeoutError as e:
                logger.warning(e.message)
                await self._fail_attempt(
                    attempt, "The login could not be confirmed, please try again"
                )
                return False
            except DomainException as e:
                await self._fail_attempt(attempt, e.message)
                return False
            except Exception as e:
                logger.exception("Unexpected error while completing OAuth")
                await self._fail_attempt(attempt, str(e) or e.__class__.__name__)
                return False
            finally:
                correlation_id_var.reset(token)

    async def _handle_callback(self, attempt: OAuthAttempt, callback: OAuthCallback) -> bool:
        self._state.update(pending_authorization_link=None)

        if callback.error_text is not None:
            await self._fail_attempt(attempt, callback.error_text)
            return False

        if not (callback.has_token or callback.has_code):
            raise MissingCallbackParametersError("Callback is missing token or code/state")

        origin = self._api.base_url
        if not origin:
            raise ConfigurationUnavailableError("No server address configured")

        self._state.update(oauth_phase=OAuthPhase.EXCHANGING_TOKEN)
        result: ApiResult[TokenExchangeOutcome]
        if callback.has_token:
            result = await self._api.exchange_token(callback.token or "")
        else:
            # legacy authorization-code redirect
            result = await self._api.oauth_callback(callback.code or "", callback.state or "")

        if not attempt.active:
            return False
        if not result.ok:
            raise TokenExchangeError(result.error or "Token exchange failed", result.status_code)

        self._state.update(oauth_phase=OAuthPhase.VERIFYING_SESSION)
        poll = await self._poll_auth_cookie(origin, cancel_event=attempt.cancel_event)
        if poll.cancelled or not attempt.active:
            return False
        if not poll.succeeded:
            self._state.update(is_logged_in=False)
            raise SessionVerificationTimeoutError(poll.attempts)

        outcome = result.value or TokenExchangeOutcome()
        user = parse_user(outcome.user) or self._state.current_user
        attempt.finished = True
        if callback.credential is not None:
            self._consumed_credentials.add(callback.credential)
        self._state.update(
            oauth_phase=OAuthPhase.COMPLETED,
            is_logged_in=True,
            is_login_prompt_visible=False,
            current_user=user,
        )
        logger.info(LogMessages.oauth_completed(attempt.attempt_id, poll.attempts, poll.elapsed_ms))
        await self._notifications.send_oauth_succeeded(user.name if user else None)
        return True

    async def _fail_attempt(self, attempt: OAuthAttempt, reason: str) -> None:
        """Move the attempt to FAILED, unless it was cancelled or superseded."""
        if not attempt.active or self._attempt is not attempt:
            logger.debug("Not failing attempt %s, no longer current", attempt.attempt_id)
            return
        phase = self._state.oauth_phase
        attempt.finished = True
        self._state.update(oauth_phase=OAuthPhase.FAILED, pending_authorization_link=None)
        logger.warning(LogMessages.oauth_failed(attempt.attempt_id, phase.value, reason))
        await self._notifications.send_oauth_failed(reason)

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    async def aclose(self) -> None:
        """Cancel the running OAuth attempt and session check."""
        self.cancel_oauth("shutdown")
        task = self._check_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.debug("Session check cancelled on shutdown")
