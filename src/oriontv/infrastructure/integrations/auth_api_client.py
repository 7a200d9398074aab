"""HTTP client for the streaming backend's auth endpoints."""

import logging
from http.cookiejar import CookieJar
from typing import Any
from urllib.parse import parse_qs, urljoin, urlsplit

import httpx

from oriontv.api.schemas import (
    AuthorizeLinkPayload,
    LoginResponsePayload,
    RegisterResponsePayload,
    ServerConfigPayload,
    TokenExchangePayload,
)
from oriontv.config.settings import ServerSettings
from oriontv.domain.entities import ServerConfig
from oriontv.domain.exceptions import (
    ConfigurationUnavailableError,
    DomainException,
    ErrorKind,
    HttpStatusError,
    NetworkUnavailableError,
    UnauthorizedError,
)
from oriontv.domain.ports import IAuthApiClient
from oriontv.domain.value_objects import (
    ApiResult,
    RegistrationOutcome,
    TokenExchangeOutcome,
)

logger = logging.getLogger(__name__)


def _json_body(response: httpx.Response) -> Any:
    """Decoded JSON body, or None when the body is empty or not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_text(response: httpx.Response, fallback: str | None = None) -> str:
    """Best human-readable error of a failed response."""
    body = _json_body(response)
    if isinstance(body, dict):
        for key in ("error", "message"):
            if isinstance(body.get(key), str) and body[key]:
                return str(body[key])
    text = response.text.strip() if response.content else ""
    return text[:200] or fallback or f"HTTP error! status: {response.status_code}"


class AuthApiClient(IAuthApiClient):
    """httpx client for login, logout, register, OAuth and server config.

    Hey future me - the cookie jar is SHARED with HttpxCookieStore on purpose!
    When /api/oauth/exchange-token answers with Set-Cookie, httpx writes the
    session cookie into this jar, and the session service's cookie poll reads
    the very same jar. Pass a stdlib CookieJar (not httpx.Cookies): httpx wraps
    a CookieJar by reference but COPIES an httpx.Cookies instance.

    Redirects are never followed. /api/oauth/authorize answers with a redirect
    to the identity provider, and we want that Location, not the provider's
    HTML login page.
    """

    SERVER_CONFIG_PATH = "/api/server-config"
    LOGIN_PATH = "/api/login"
    LOGOUT_PATH = "/api/logout"
    REGISTER_PATH = "/api/register"
    AUTHORIZE_PATH = "/api/oauth/authorize"
    CALLBACK_PATH = "/api/oauth/callback"
    EXCHANGE_TOKEN_PATH = "/api/oauth/exchange-token"  # nosec B105 - endpoint path, not a secret

    def __init__(
        self,
        settings: ServerSettings,
        cookie_jar: CookieJar | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Server origin, timeout and user agent
            cookie_jar: Jar shared with the cookie store (new one if None)
            transport: Optional httpx transport (tests)
        """
        self.settings = settings
        self._base_url = settings.api_base_url
        self.cookie_jar = cookie_jar if cookie_jar is not None else CookieJar()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str | None:
        return self._base_url

    def set_base_url(self, base_url: str | None) -> None:
        normalized = base_url.strip().rstrip("/") if base_url else None
        if normalized != self._base_url:
            logger.info("API base URL changed to %s", normalized)
        self._base_url = normalized or None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.request_timeout,
                headers={
                    "User-Agent": self.settings.user_agent,
                    "Accept": "application/json",
                },
                cookies=self.cookie_jar,
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AuthApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # Yo, EVERY request goes through here so error classification lives in one place:
    # transport failure -> NetworkUnavailableError, malformed server address ->
    # ConfigurationUnavailableError, 401 -> UnauthorizedError, other
    # non-2xx -> HttpStatusError(status). Redirects only pass when the caller asks.
    async def _request(
        self,
        method: str,
        path: str,
        allow_redirect: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        if not self._base_url:
            raise ConfigurationUnavailableError("API_URL_NOT_SET")

        client = await self._get_client()
        url = f"{self._base_url}{path}"
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkUnavailableError(
                f"Cannot reach {self._base_url}: {e.__class__.__name__}"
            ) from e
        except httpx.InvalidURL as e:
            raise ConfigurationUnavailableError(
                f"Invalid server address {self._base_url}: {e}"
            ) from e

        if response.status_code == 401:
            raise UnauthorizedError(_error_text(response, fallback="Unauthorized"))
        if response.is_success or (allow_redirect and response.is_redirect):
            return response
        raise HttpStatusError(response.status_code, _error_text(response))

    async def get_server_config(self) -> ServerConfig:
        response = await self._request("GET", self.SERVER_CONFIG_PATH)
        body = _json_body(response)
        if not isinstance(body, dict):
            raise ConfigurationUnavailableError("Server config is not a JSON object")
        try:
            payload = ServerConfigPayload.model_validate(body)
        except ValueError as e:
            raise ConfigurationUnavailableError(f"Invalid server config: {e}") from e
        return payload.to_entity()

    async def login(
        self, username: str | None = None, password: str | None = None
    ) -> ApiResult[None]:
        # Credential-less login (local storage mode) must send {} - not nulls
        body = {
            key: value
            for key, value in (("username", username), ("password", password))
            if value is not None
        }
        try:
            response = await self._request("POST", self.LOGIN_PATH, json=body)
        except UnauthorizedError as e:
            error = e.message if e.message != "Unauthorized" else ""
            return ApiResult.failure(
                ErrorKind.UNAUTHORIZED,
                error or "Invalid username or password",
                status_code=401,
            )
        except DomainException as e:
            return ApiResult.from_exception(e)

        body = _json_body(response)
        payload = LoginResponsePayload.model_validate(body if isinstance(body, dict) else {})
        if payload.is_ok:
            return ApiResult.success(message=payload.message)
        return ApiResult.failure(
            ErrorKind.REJECTED,
            payload.error or payload.message or "Login failed",
            status_code=response.status_code,
        )

    async def logout(self) -> ApiResult[None]:
        try:
            response = await self._request("POST", self.LOGOUT_PATH)
        except DomainException as e:
            return ApiResult.from_exception(e)

        body = _json_body(response)
        payload = LoginResponsePayload.model_validate(body if isinstance(body, dict) else {})
        if payload.is_ok:
            return ApiResult.success()
        return ApiResult.failure(
            ErrorKind.REJECTED, payload.error or "Logout failed", response.status_code
        )

    async def register(
        self, username: str, password: str, confirm_password: str
    ) -> ApiResult[RegistrationOutcome]:
        body = {
            "username": username,
            "password": password,
            "confirmPassword": confirm_password or password,
        }
        try:
            response = await self._request("POST", self.REGISTER_PATH, json=body)
        except DomainException as e:
            # Non-2xx bodies carry the reason ("username taken"); _error_text already
            # pulled it into the exception message
            return ApiResult.from_exception(e)

        raw = _json_body(response)
        if not isinstance(raw, dict):
            return ApiResult.failure(
                ErrorKind.HTTP_ERROR,
                "Unexpected registration response",
                status_code=response.status_code,
            )
        payload = RegisterResponsePayload.model_validate(raw)
        if payload.is_ok:
            return ApiResult.success(
                RegistrationOutcome(needs_approval=payload.needs_approval),
                message=payload.message,
            )
        return ApiResult.failure(
            ErrorKind.REJECTED,
            payload.failure_reason or "Registration failed",
            status_code=response.status_code,
            message=payload.message,
        )

    async def start_oauth(self) -> ApiResult[str]:
        try:
            response = await self._request(
                "GET",
                self.AUTHORIZE_PATH,
                allow_redirect=True,
                params={"mobile": "1"},
            )
        except DomainException as e:
            return ApiResult.from_exception(e)

        if response.is_redirect:
            location = response.headers.get("location")
            if location:
                # Relative Location headers resolve against the server origin
                return ApiResult.success(urljoin(f"{self._base_url}/", location))

        body = _json_body(response)
        if isinstance(body, dict):
            link = AuthorizeLinkPayload.model_validate(body).link
            if link:
                return ApiResult.success(link)

        return ApiResult.failure(
            ErrorKind.INVALID_AUTHORIZATION_LINK,
            "Server did not return an authorization link",
            status_code=response.status_code,
        )

    async def oauth_callback(
        self, code: str, state: str
    ) -> ApiResult[TokenExchangeOutcome]:
        logger.debug("Sending OAuth code callback (state=%s...)", state[:8])
        try:
            response = await self._request(
                "GET",
                self.CALLBACK_PATH,
                allow_redirect=True,
                params={"code": code, "state": state},
                headers={"X-Mobile-App": "true", "Cache-Control": "no-cache"},
            )
        except DomainException as e:
            return self._exchange_failure(e, "Callback failed")

        if response.is_redirect:
            location = response.headers.get("location", "")
            error = parse_qs(urlsplit(location).query).get("error")
            if error:
                return ApiResult.failure(
                    ErrorKind.TOKEN_EXCHANGE_FAILURE,
                    error[0] or "Authorization failed",
                    status_code=response.status_code,
                )
            return ApiResult.success(TokenExchangeOutcome(cookie=self._session_cookie(response)))

        body = _json_body(response)
        if isinstance(body, dict) and body.get("error"):
            return ApiResult.failure(
                ErrorKind.TOKEN_EXCHANGE_FAILURE,
                str(body["error"]),
                status_code=response.status_code,
            )
        user = body.get("user") if isinstance(body, dict) else None
        return ApiResult.success(
            TokenExchangeOutcome(
                cookie=self._session_cookie(response),
                user=user if isinstance(user, dict) else None,
            )
        )

    async def exchange_token(self, token: str) -> ApiResult[TokenExchangeOutcome]:
        try:
            response = await self._request(
                "GET",
                self.EXCHANGE_TOKEN_PATH,
                params={"token": token},
                headers={"Cache-Control": "no-cache"},
            )
        except DomainException as e:
            return self._exchange_failure(e, "Token exchange failed")

        body = _json_body(response)
        if not isinstance(body, dict):
            return ApiResult.failure(
                ErrorKind.TOKEN_EXCHANGE_FAILURE,
                "Unexpected token exchange response",
                status_code=response.status_code,
            )
        payload = TokenExchangePayload.model_validate(body)
        if not payload.success:
            return ApiResult.failure(
                ErrorKind.TOKEN_EXCHANGE_FAILURE,
                payload.error or payload.message or "Token exchange was rejected",
                status_code=response.status_code,
            )
        if payload.cookie is None:
            logger.info("Token exchange succeeded without a cookie value in the body")
        return ApiResult.success(TokenExchangeOutcome(cookie=payload.cookie, user=payload.user))

    @staticmethod
    def _exchange_failure(
        exc: DomainException, prefix: str
    ) -> ApiResult[TokenExchangeOutcome]:
        if exc.kind is ErrorKind.NETWORK_UNAVAILABLE:
            return ApiResult.from_exception(exc)
        return ApiResult.failure(
            ErrorKind.TOKEN_EXCHANGE_FAILURE,
            f"{prefix}: {exc.message}",
            status_code=getattr(exc, "status_code", None),
        )

    @staticmethod
    def _session_cookie(response: httpx.Response) -> str | None:
        # Only informational - the jar already has it if the server set one
        return next(iter(response.cookies.values()), None) if response.cookies else None
