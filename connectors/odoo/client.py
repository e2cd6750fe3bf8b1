"""Odoo JSON-RPC Client.

Low-level async client for the Odoo external API (`/jsonrpc`).
Handles authentication, the JSON-RPC envelope, retries and error handling.
"""

from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import asyncio
import itertools
import json

import aiohttp

from core.observability.logging import get_logger

logger = get_logger(__name__)


class OdooApiError(Exception):
    """Base exception for Odoo API errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class OdooConfigError(OdooApiError):
    """Credentials are missing or incomplete."""
    pass


class OdooAuthenticationError(OdooApiError):
    """common.authenticate did not return a user id."""
    pass


class OdooRpcError(OdooApiError):
    """The RPC call returned an error envelope or no result."""
    pass


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class OdooConfig:
    """Connection settings for one Odoo database."""
    url: str
    db: str
    user: str
    password_or_key: str
    timeout_seconds: int = 60
    retry_config: RetryConfig = field(default_factory=RetryConfig)

    @property
    def endpoint(self) -> str:
        return f"{self.url.rstrip('/')}/jsonrpc"

    def is_complete(self) -> bool:
        return all([self.url, self.db, self.user, self.password_or_key])

    @classmethod
    def from_settings(cls, settings) -> "OdooConfig":
        """Build from core.config.Settings.

        Raises:
            OdooConfigError: A credential is missing
        """
        config = cls(
            url=settings.odoo_url,
            db=settings.odoo_db,
            user=settings.odoo_user,
            password_or_key=settings.odoo_password,
        )
        if not config.is_complete():
            raise OdooConfigError("Odoo configuration incomplete (ODOO_URL/DB/USER and ODOO_API or ODOO_PWD)")
        return config


class OdooClient:
    """Async client for the Odoo JSON-RPC API.

    Provides:
    - Authentication (uid cached per client)
    - execute_kw / search_read
    - Error handling and retries

    Usage:
        async with OdooClient(config) as client:
            rows = await client.search_read("property.tenancy", [], ["name"])
    """

    def __init__(self, config: OdooConfig, session: Optional[aiohttp.ClientSession] = None):
        """Initialize client.

        Args:
            config: Connection settings
            session: Existing HTTP session (not closed by this client)
        """
        if not config.is_complete():
            raise OdooConfigError("Odoo configuration incomplete")
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._uid: Optional[int] = None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "OdooClient":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def _post(self, service: str, method: str, args: List[Any]) -> Any:
        """Send one JSON-RPC call with automatic retries.

        Returns:
            The envelope's result

        Raises:
            OdooRpcError: Error envelope or missing result
            OdooApiError: HTTP or transport failure
        """
        if self._session is None:
            raise OdooApiError("Not connected. Use 'async with OdooClient(...)'.")

        payload = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": next(self._ids),
        }
        retry_config = self.config.retry_config
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        last_error: Optional[Exception] = None

        for attempt in range(retry_config.max_retries + 1):
            try:
                async with self._session.post(self.config.endpoint, json=payload, timeout=timeout) as response:
                    response_text = await response.text()

                    if response.status >= 400:
                        if response.status in retry_config.retry_on_status and attempt < retry_config.max_retries:
                            delay = retry_config.get_delay(attempt)
                            logger.warning(
                                f"Odoo RPC failed with {response.status}, "
                                f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                            )
                            await asyncio.sleep(delay)
                            continue
                        raise OdooApiError(
                            f"Odoo RPC HTTP {response.status}: {response_text}",
                            response.status,
                            response_text,
                        )

                    return self._unwrap(response_text, response.status)

            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = e
                if attempt < retry_config.max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"Odoo RPC failed with {type(e).__name__}: {e}, "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise OdooApiError(f"Odoo RPC failed after {retry_config.max_retries} retries: {e}") from e

        raise OdooApiError(f"Odoo RPC failed: {last_error}")

    @staticmethod
    def _unwrap(response_text: str, status: int) -> Any:
        try:
            envelope = json.loads(response_text) if response_text else {}
        except json.JSONDecodeError as e:
            raise OdooRpcError(f"Odoo RPC returned invalid JSON: {e}", status, response_text) from e

        if not isinstance(envelope, dict):
            raise OdooRpcError("Odoo RPC returned a non-object envelope", status, response_text)

        error = envelope.get("error")
        if error:
            if isinstance(error, dict):
                message = error.get("message") or "unknown error"
                data = error.get("data")
                debug = data.get("debug") if isinstance(data, dict) else None
                if debug:
                    message = f"{message}\n{debug}"
            else:
                message = str(error)
            raise OdooRpcError(f"Odoo RPC error: {message}", status, response_text)

        if "result" not in envelope:
            raise OdooRpcError("Odoo RPC: result undefined", status, response_text)
        return envelope["result"]

    async def authenticate(self) -> int:
        """Authenticate and return the user id (cached)."""
        if self._uid is not None:
            return self._uid

        uid = await self._post(
            "common",
            "authenticate",
            [self.config.db, self.config.user, self.config.password_or_key, {}],
        )
        if isinstance(uid, bool) or not isinstance(uid, int) or uid <= 0:
            raise OdooAuthenticationError(f"Odoo authentication failed for user {self.config.user!r}")

        logger.info(f"Authenticated to Odoo as uid {uid}")
        self._uid = uid
        return uid

    async def execute_kw(
        self,
        model: str,
        method: str,
        args: List[Any],
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Call a model method through object.execute_kw."""
        uid = await self.authenticate()
        return await self._post(
            "object",
            "execute_kw",
            [self.config.db, uid, self.config.password_or_key, model, method, args, kwargs or {}],
        )

    async def search_read(
        self,
        model: str,
        domain: List[Any],
        fields: List[str],
        limit: int = 5000,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Generic search_read."""
        result = await self.execute_kw(
            model, "search_read", [domain], {"fields": fields, "limit": limit, "offset": offset}
        )
        return result or []
