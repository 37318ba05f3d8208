# happytails/clients/api_client.py
import logging
import uuid
from typing import Any

import httpx

from happytails.core.config import get_settings
from happytails.core.errors import NotFoundError, TransportError, ValidationError

logger = logging.getLogger(__name__)


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str):
            return message
    return None


class HappyTailsClient:
    """
    Async JSON client for the Happy Tails API.

    - Unwraps the `{success, message, ...}` envelope
    - Maps failures onto the domain errors:
        network error          -> TransportError (transport message)
        404                    -> NotFoundError
        400 / 422              -> ValidationError
        other >= 400           -> TransportError
        200 with success=false -> TransportError
      The server's `message` is preferred over a generic text.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            headers=headers,
            transport=transport,
            timeout=httpx.Timeout(timeout or settings.HTTP_TIMEOUT_SECONDS),
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        message = _server_message(response)

        if response.status_code == 404:
            raise NotFoundError(message or f"Not found: {path}")
        if response.status_code in (400, 422):
            raise ValidationError(message or "Request was rejected")
        if response.status_code >= 400:
            logger.warning("%s %s returned HTTP %s", method, path, response.status_code)
            raise TransportError(
                message or f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {path}") from exc

        if isinstance(body, dict) and body.get("success") is False:
            raise TransportError(message or "Request failed", status_code=response.status_code)
        return body

    async def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> dict[str, Any]:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> dict[str, Any]:
        return await self.request("PUT", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("DELETE", path, **kwargs)

    # ----- Storefront calls -----

    async def get_product(self, product_id: uuid.UUID) -> dict[str, Any]:
        body = await self.get(f"/products/product/{product_id}")
        return body["product"]

    async def get_event(self, event_id: uuid.UUID) -> dict[str, Any]:
        body = await self.get(f"/events/{event_id}")
        return body["event"]

    async def book_tickets(self, event_id: uuid.UUID, payload: dict) -> dict[str, Any]:
        """POST /tickets/{event_id}; returns the created ticket."""
        body = await self.post(f"/tickets/{event_id}", json=payload)
        return body.get("ticket", body)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HappyTailsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
