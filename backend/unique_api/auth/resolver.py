"""
Turns an incoming request into a ``Principal``.

Resolution is a single pass where the first matching rule wins:

1. bypass prefixes (docs, health) pass through without a principal
2. a matching system secret header yields the system principal
3. otherwise the session cookie is looked up in the session store

Every authentication failure raises the same ``AuthError`` so that callers
cannot tell which check failed; the reason is only logged.
"""
from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from typing import Final, NoReturn, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..domain.ports.session import SessionStoreFactory
from ..errors import AuthError, StoreError
from .principal import Principal, system_principal

logger = logging.getLogger("unique_api.auth")

DEFAULT_BYPASS_PREFIXES: Final[tuple[str, ...]] = (
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/swagger-ui",
    "/api-docs",
)


class PrincipalResolver:
    def __init__(
        self,
        *,
        api_key: str,
        session_store_factory: SessionStoreFactory,
        session_cookie_name: str = "unique-sid",
        api_key_header: str = "x-api-key",
        constant_time_compare: bool = False,
        bypass_prefixes: Sequence[str] = DEFAULT_BYPASS_PREFIXES,
    ) -> None:
        self._api_key = api_key
        self._session_store_factory = session_store_factory
        self._session_cookie_name = session_cookie_name
        self._api_key_header = api_key_header.lower()
        self._constant_time_compare = constant_time_compare
        self._bypass_prefixes = tuple(bypass_prefixes)

    def is_bypassed(self, path: str) -> bool:
        return path.startswith(self._bypass_prefixes)

    def matches_system_secret(self, presented: str | None) -> bool:
        # An unset secret disables the system path entirely.
        if presented is None or not self._api_key:
            return False
        if self._constant_time_compare:
            return hmac.compare_digest(
                presented.encode("utf-8"), self._api_key.encode("utf-8")
            )
        return presented == self._api_key

    async def resolve(
        self,
        path: str,
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
    ) -> Principal | None:
        """Return the caller's principal, or ``None`` for a bypassed path.

        Raises:
            AuthError: no usable credentials were presented
            StoreError: the session store could not be queried
        """
        if self.is_bypassed(path):
            return None

        if self.matches_system_secret(headers.get(self._api_key_header)):
            logger.debug("System principal authenticated path=%s", path)
            return system_principal()

        token = cookies.get(self._session_cookie_name)
        if not token:
            self._reject(path, "missing session cookie")

        try:
            async with self._session_store_factory() as store:
                session = await store.get_by_token(token)
        except SQLAlchemyError as exc:
            logger.error("Session lookup failed path=%s", path, exc_info=exc)
            raise StoreError("Could not load session") from exc

        if session is None:
            self._reject(path, "unknown session")
        if not session.is_enable:
            self._reject(path, "disabled session")

        return Principal(user_id=session.user_id, session_id=session.id)

    @staticmethod
    def _reject(path: str, reason: str) -> NoReturn:
        logger.warning("Authentication failed path=%s reason=%s", path, reason)
        raise AuthError()
