"""Axonaut REST API client.

Handles:
- Building authenticated requests from endpoint descriptors
- Sending exactly one HTTP request per call (no retries at this layer)
- Normalizing every transport failure into a single TransportError
"""
from typing import Any, Optional, Union

import httpx
import structlog

from axonaut_node.config import get_settings
from axonaut_node.models import EndpointDescriptor, HttpMethod

logger = structlog.get_logger()


class AxonautError(Exception):
    """Base class for errors raised by the Axonaut integration."""


class TransportError(AxonautError):
    """Any failed HTTP exchange with the Axonaut API.

    Raised for non-2xx responses, network failures and bodies that are not
    valid JSON. It never interprets the response for business meaning.
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        path: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Any = None,
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.response_body = response_body

    def to_dict(self) -> dict:
        return {
            "message": str(self),
            "method": self.method,
            "path": self.path,
            "status_code": self.status_code,
            "response_body": self.response_body,
        }


class AxonautClient:
    """Client for the Axonaut v2 REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = settings.resolve_base_url(base_url)
        self.api_key = api_key or settings.axonaut_api_key
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport

        if not self.api_key:
            raise ValueError("Axonaut API key not configured")

        self.headers = {
            settings.axonaut_api_key_header: self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def execute(self, descriptor: EndpointDescriptor) -> Any:
        """Send a single request described by `descriptor`.

        Args:
            descriptor: The fully-formed endpoint descriptor

        Returns:
            The decoded JSON payload, or None for an empty 2xx body

        Raises:
            TransportError: on any non-2xx status, network failure or
                undecodable body
        """
        method = descriptor.method.value
        url = f"{self.base_url}{descriptor.path}"
        headers = {**self.headers, **{k: str(v) for k, v in descriptor.headers.items()}}

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    # GET/DELETE with an empty object body confuse some servers
                    json=descriptor.body if descriptor.has_body else None,
                    params=descriptor.query or None,
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                logger.error(
                    "axonaut_api_error",
                    method=method,
                    endpoint=descriptor.path,
                    error=str(e),
                )
                raise TransportError(
                    f"HTTP error: {str(e)}",
                    method=method,
                    path=descriptor.path,
                ) from e

        # Log request (without the API key)
        logger.debug(
            "axonaut_api_request",
            method=method,
            endpoint=descriptor.path,
            status_code=response.status_code,
        )

        if not response.is_success:
            raise TransportError(
                f"Axonaut API error: {response.status_code}",
                method=method,
                path=descriptor.path,
                status_code=response.status_code,
                response_body=_error_body(response),
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Axonaut API returned a malformed JSON body",
                method=method,
                path=descriptor.path,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    async def request(
        self,
        method: Union[HttpMethod, str],
        path: str,
        body: Optional[dict] = None,
        query: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """Build a descriptor and execute it."""
        descriptor = EndpointDescriptor(
            method=HttpMethod(method),
            path=path,
            body=body or {},
            query=query or {},
            headers=headers or {},
        )
        return await self.execute(descriptor)

    async def check_credentials(self) -> dict:
        """Verify the configured key by fetching the current user.

        Returns:
            The `/me` payload
        """
        logger.info("check_credentials", base_url=self.base_url)
        result = await self.request(HttpMethod.GET, "/me")
        return result if isinstance(result, dict) else {}


def _error_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text
