# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import AsyncIterable
from dataclasses import dataclass

from .._http import URI, Fields


@dataclass(kw_only=True)
class HTTPRequest:
    """A signed request ready to be handed to a transport."""

    destination: URI
    method: str
    fields: Fields
    body: bytes = b""


@dataclass(kw_only=True)
class HTTPResponse:
    """Basic implementation of :py:class:`..interfaces.http.HTTPResponse`.

    Transports may return instances of this class or of custom response
    implementations.
    """

    body: AsyncIterable[bytes]
    """The response payload as iterable of chunks of bytes."""

    status: int
    """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""

    fields: Fields
    """HTTP header fields."""

    reason: str | None = None
    """Optional string provided by the server explaining the status."""

    async def consume_body(self) -> bytes:
        """Iterate over response body and return as bytes."""
        body = b""
        async for chunk in self.body:
            body += chunk
        return body
