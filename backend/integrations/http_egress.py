"""Outbound HTTP used by ``webhook`` workflow steps."""

from typing import Any, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


class HttpEgress:
    """Thin async wrapper over httpx for JSON request/response calls.

    Transport failures and non-2xx responses raise (``httpx.HTTPError``
    subclasses), which fails the calling step.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport

    async def request(
        self,
        url: str,
        method: str = "POST",
        headers: Optional[dict[str, str]] = None,
        json_body: Any = None,
    ) -> Any:
        """Send a request and return the parsed JSON response body.

        Args:
            url: Target URL
            method: HTTP method
            headers: Extra headers, applied over the JSON content type
            json_body: Payload serialized as JSON; omitted when None

        Returns:
            Decoded JSON response
        """
        merged_headers = {**JSON_HEADERS, **(headers or {})}
        kwargs: dict[str, Any] = {
            "method": method.upper(),
            "url": url,
            "headers": merged_headers,
        }
        if json_body is not None:
            kwargs["json"] = json_body

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.request(**kwargs)

        logger.info(
            "Webhook request finished",
            url=url,
            method=kwargs["method"],
            status_code=response.status_code,
        )
        response.raise_for_status()
        return response.json()
