# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from enum import StrEnum
from urllib.parse import urlsplit

from ._http import URI, Fields
from ._identity import Credentials
from .exceptions import InvalidPathError, S3ResponseError
from .http import HTTPRequest
from .http.aiohttp_client import AIOHTTPClient
from .interfaces.http import HTTPClient, HTTPRequestConfiguration, HTTPResponse
from .payload import BytesPayload
from .signers import Clock, SigV4Signer

logger = logging.getLogger(__name__)


class AccessControlList(StrEnum):
    """Canned ACLs accepted in the ``x-amz-acl`` header."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AWS_EXEC_READ = "aws-exec-read"
    AUTHENTICATED_READ = "authenticated-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"


class S3Client:
    """Uploads objects to an S3-compatible store with SigV4-signed PUT requests."""

    def __init__(
        self,
        *,
        host: str,
        access_key: str,
        secret_key: str,
        region: str,
        scheme: str = "https",
        http_client: HTTPClient | None = None,
        clock: Clock | None = None,
    ):
        """
        :param host: Host of the bucket endpoint, for example
            ``bucket.s3.amazonaws.com``. May carry a ``:port`` suffix.
        :param scheme: ``https`` for real endpoints. ``http`` is accepted for local
            S3-compatible servers.
        :param http_client: Transport used to send signed requests. Defaults to an
            aiohttp based client owned by this instance and closed by
            :py:meth:`close`.
        :param clock: Override of the signing clock.
        """
        self.host = host
        self.scheme = scheme
        self.signer = SigV4Signer(
            credentials=Credentials(
                access_key_id=access_key,
                secret_access_key=secret_key,
                region=region,
                service="s3",
                host=host,
            ),
            clock=clock,
        )
        self._owned_http_client: AIOHTTPClient | None = None
        if http_client is None:
            http_client = self._owned_http_client = AIOHTTPClient()
        self.http_client: HTTPClient = http_client

    async def upload(
        self,
        *,
        data: bytes,
        path: str,
        access: AccessControlList | str = AccessControlList.PUBLIC_READ,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Store ``data`` under ``path`` with a signed PUT.

        :param data: The raw object bytes, sent as the request body.
        :param path: The object key, beginning with ``/``.
        :param access: The canned ACL applied to the object.
        :raises InvalidPathError: If no valid URL can be built from host and path.
        :raises S3ResponseError: If the store answers with a non-2xx status.
        """
        destination = self.generate_uri(path)
        signed_headers = self.signer.sign(
            payload=BytesPayload(data),
            method="PUT",
            path=path,
            headers={"x-amz-acl": str(access)},
        )
        request = HTTPRequest(
            destination=destination,
            method="PUT",
            fields=Fields.from_mapping(signed_headers),
            body=data,
        )
        logger.debug("Uploading %d bytes to %s", len(data), path)
        response = await self.http_client.send(
            request=request, request_config=request_config
        )
        if not 200 <= response.status < 300:
            body = await response.consume_body()
            logger.debug("Upload to %s failed with status %s", path, response.status)
            raise S3ResponseError(response.status, response.reason, body)
        return response

    async def close(self) -> None:
        """Close the default transport. Injected transports are left open."""
        if self._owned_http_client is not None:
            await self._owned_http_client.close()

    async def __aenter__(self) -> "S3Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def generate_uri(self, path: str) -> URI:
        """Build the target ``{scheme}://{host}{path}`` location for an object."""
        uri = URI(scheme=self.scheme, host=self.host, path=path)
        if any(ord(char) < 0x20 or ord(char) == 0x7F for char in path):
            raise InvalidPathError(f"Object path contains control characters: {path!r}")
        try:
            parsed = urlsplit(uri.build())
            # Accessing the port validates it.
            parsed.port
        except ValueError as e:
            raise InvalidPathError(f"Unable to build a URL for path {path!r}") from e
        if not parsed.hostname:
            raise InvalidPathError(f"Unable to parse hostname from host {self.host!r}")
        return uri
