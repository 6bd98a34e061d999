"""Async client for the Dataverse Web API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from crmban.errors import QueryExecutionError, RemoteUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
    "Prefer": 'odata.include-annotations="OData.Community.Display.V1.FormattedValue"',
}

# Characters OData expects to see literally in paths and system query options
_SAFE = "$'(),=/"


def build_query(params: dict[str, str] | None) -> str:
    """Encode query options, keeping the ``$`` prefixes readable."""
    if not params:
        return ""
    return "?" + urlencode(params, quote_via=quote, safe=_SAFE)


def _error_message(response: httpx.Response) -> str:
    """Pull the service's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.reason_phrase


class WebApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` with error classification.

    Client errors (4xx) mean the service understood and refused the request,
    so they surface as ``QueryExecutionError``. Transport failures, auth
    problems, throttling and 5xx responses surface as ``RemoteUnavailableError``.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = dict(DEFAULT_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> WebApiClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str) -> dict[str, Any]:
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise RemoteUnavailableError(f"request timed out: {url}") from exc
        except httpx.RequestError as exc:
            raise RemoteUnavailableError(f"network error: {exc}") from exc

        status = response.status_code
        if status in (401, 403, 429) or status >= 500:
            raise RemoteUnavailableError(f"HTTP {status}: {_error_message(response)}")
        if status >= 400:
            raise QueryExecutionError(f"HTTP {status}: {_error_message(response)}")

        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteUnavailableError(f"invalid JSON from {url}") from exc
        if not isinstance(body, dict):
            raise RemoteUnavailableError(f"unexpected payload from {url}")
        return body

    async def retrieve(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET a single resource, e.g. ``systemusers(<id>)``."""
        return await self._get(path + build_query(params))

    async def retrieve_multiple(self, path: str, params: dict[str, str] | None = None) -> list[dict[str, Any]]:
        """GET a collection, following ``@odata.nextLink`` pages."""
        values: list[dict[str, Any]] = []
        url: str | None = path + build_query(params)
        while url:
            body = await self._get(url)
            values.extend(body.get("value", []))
            url = body.get("@odata.nextLink")
        return values

    async def fetch(self, entity_set: str, fetch_xml: str) -> list[dict[str, Any]]:
        """Execute a FetchXML query against an entity set."""
        body = await self._get(entity_set + build_query({"fetchXml": fetch_xml}))
        return body.get("value", [])

    async def who_am_i(self) -> str:
        """Return the calling user's id."""
        body = await self._get("WhoAmI")
        try:
            return body["UserId"]
        except KeyError as exc:
            raise RemoteUnavailableError("WhoAmI response has no UserId") from exc
