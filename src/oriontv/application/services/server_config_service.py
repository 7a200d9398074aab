"""Loads and caches GET /api/server-config."""

import asyncio
import logging

from oriontv.domain.entities import ServerConfig
from oriontv.domain.exceptions import ConfigurationUnavailableError, DomainException
from oriontv.domain.ports import IAuthApiClient, IServerConfigSource
from oriontv.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)


class ServerConfigService(IServerConfigSource):
    """Owns the last known server config and whether a load is running.

    Hey future me - the session check WAITS on ``is_loading`` (up to a few
    seconds) before it decides between cookie and local mode. So is_loading must
    flip back to False in every path, including failures, or check_session
    sits out its whole wait budget on every call.

    Concurrent ``load()`` calls share one request.
    """

    def __init__(self, api: IAuthApiClient) -> None:
        self._api = api
        self._config: ServerConfig | None = None
        self._last_error: DomainException | None = None
        self._inflight: asyncio.Task[ServerConfig | None] | None = None

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def server_config(self) -> ServerConfig | None:
        return self._config

    @property
    def last_error(self) -> DomainException | None:
        return self._last_error

    async def load(self) -> ServerConfig | None:
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._fetch(), name="server-config-load")
        # shield: one caller being cancelled must not abort the shared request
        return await asyncio.shield(self._inflight)

    def reset(self) -> None:
        """Forget the cached config (the server address changed)."""
        self._config = None
        self._last_error = None

    async def _fetch(self) -> ServerConfig | None:
        try:
            config = await self._api.get_server_config()
        except DomainException as e:
            self._last_error = e
            logger.warning(
                LogMessages.connection_failed(
                    "Server config", self._api.base_url or "<no server address>", e.message
                )
            )
            return None
        except Exception as e:
            logger.exception("Unexpected error while loading the server config")
            self._last_error = ConfigurationUnavailableError(
                f"Server config could not be loaded: {e.__class__.__name__}"
            )
            return None

        self._config = config
        self._last_error = None
        logger.info(
            "Server config loaded: site=%s storage=%s oauth=%s",
            config.site_name,
            config.storage_mode,
            bool(config.oauth and config.oauth.enabled),
        )
        return config
