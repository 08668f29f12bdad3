"""Lightweight async GraphQL client for Hasura-style mutation endpoints.

This module provides:
- `GraphQLClient`: an async client with sane timeouts/connection limits
  implementing the generic "execute mutation with parameters" gateway.

Transport errors, non-2xx statuses and GraphQL `errors` payloads all raise
`PersistenceError`; nothing is retried here.
"""

from __future__ import annotations

from typing import Any

import httpx

from devhind.core.config import GraphQLConfig
from devhind.core.errors import PersistenceError


def _error_messages(errors: Any) -> str:
    """Join the `message` of each error entry; non-object entries as-is."""
    if not isinstance(errors, list):
        errors = [errors]
    return "; ".join(str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors)


class GraphQLClient:
    """Minimal async GraphQL client.

    Parameters
    ----------
    url : str
        GraphQL endpoint URL.
    role : str | None
        Sent as the `X-Hasura-Role` header when set.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        *,
        role: str | None = None,
        timeout_s: int = 20,
        max_connections: int = 16,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        headers = {"X-Hasura-Role": role} if role else {}
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: GraphQLConfig) -> GraphQLClient:
        return cls(
            config.url,
            role=config.role,
            timeout_s=config.timeout_s,
            max_connections=config.max_connections,
        )

    async def execute(self, mutation: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Send one operation and return its `data` object."""
        try:
            r = await self.client.post(self.url, json={"query": mutation, "variables": variables})
            r.raise_for_status()
            payload = r.json()
        except httpx.HTTPError as e:
            raise PersistenceError(f"GraphQL transport error: {e}") from e
        except ValueError as e:
            raise PersistenceError(f"GraphQL response is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise PersistenceError(f"GraphQL response is not an object: {payload!r}")
        if errors := payload.get("errors"):
            raise PersistenceError(f"GraphQL error: {_error_messages(errors)}")
        return payload.get("data") or {}

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
