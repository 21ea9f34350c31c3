# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import Protocol

from .._http import URI, Fields


class HTTPRequest(Protocol):
    """HTTP primitive for an exchange with the object store.

    :param destination: The URI where the request should be sent to.
    :param method: The HTTP method of the request, for example "PUT".
    :param fields: ``Fields`` object containing the signed HTTP headers.
    :param body: The raw request body.
    """

    destination: URI
    method: str
    fields: Fields
    body: bytes


class HTTPResponse(Protocol):
    """HTTP primitives returned from an exchange."""

    @property
    def status(self) -> int:
        """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""
        ...

    @property
    def fields(self) -> Fields:
        """``Fields`` object containing HTTP headers."""
        ...

    @property
    def reason(self) -> str | None:
        """Optional string provided by the server explaining the status."""
        ...

    async def consume_body(self) -> bytes:
        """Iterate over the response body and return it as bytes."""
        ...


@dataclass(kw_only=True)
class HTTPClientConfiguration:
    """Client-level HTTP configuration.

    :param force_http_2: Whether to require HTTP/2.
    """

    force_http_2: bool = False


@dataclass(kw_only=True)
class HTTPRequestConfiguration:
    """Request-level HTTP configuration.

    :param read_timeout: How long, in seconds, the client will attempt to read the
    first byte over an established, open connection before timing out.
    """

    read_timeout: float | None = None


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface."""

    async def send(
        self,
        *,
        request: HTTPRequest,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request over the wire and return the response.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        ...
