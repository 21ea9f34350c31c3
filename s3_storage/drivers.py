# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from typing import Protocol

from .client import AccessControlList, S3Client
from .entity import FileEntity
from .exceptions import (
    InvalidPathError,
    MissingPayloadError,
    PathMissingForwardSlashError,
    UnsupportedOperationError,
)
from .interfaces.http import HTTPClient
from .path_builder import DEFAULT_TEMPLATE, ConfigurablePathBuilder, PathBuilder
from .signers import Clock

logger = logging.getLogger(__name__)


class NetworkDriver(Protocol):
    """A storage backend the :py:class:`..storage.Storage` facade delegates to."""

    path_builder: PathBuilder

    async def upload(self, entity: FileEntity) -> str:
        """Store the entity and return the path it was stored under."""
        ...

    async def get(self, path: str) -> bytes:
        """Fetch the bytes stored under ``path``."""
        ...

    async def delete(self, path: str) -> None:
        """Remove the object stored under ``path``."""
        ...

    async def close(self) -> None:
        """Release network resources held by the driver."""
        ...


class S3Driver(NetworkDriver):
    """Stores entities in an S3 bucket through signed PUT requests."""

    def __init__(
        self,
        *,
        bucket: str,
        access_key: str,
        secret_key: str,
        host: str = "s3.amazonaws.com",
        region: str = "eu-west-1",
        path_template: str = DEFAULT_TEMPLATE,
        scheme: str = "https",
        http_client: HTTPClient | None = None,
        clock: Clock | None = None,
    ):
        self.path_builder: PathBuilder = ConfigurablePathBuilder(
            path_template, clock=clock
        )
        self.s3 = S3Client(
            host=f"{bucket}.{host}",
            access_key=access_key,
            secret_key=secret_key,
            region=region,
            scheme=scheme,
            http_client=http_client,
            clock=clock,
        )

    async def upload(self, entity: FileEntity) -> str:
        """Normalize the entity, resolve its object key and PUT it as ``public-read``.

        Every validation happens before any network I/O.

        :raises MissingPayloadError: If the entity carries no bytes.
        :raises MissingFileExtensionAndTypeError: If neither the extension nor the
            mime type can be determined.
        :raises PathMissingForwardSlashError: If the resolved key lacks a leading
            ``/``.
        :raises InvalidPathError: If the resolved key names no object, for example
            ``/`` when the template only uses the missing file name.
        """
        if entity.data is None:
            raise MissingPayloadError("Cannot upload an entity without bytes.")

        prepared = entity.normalized()
        path = self.path_builder.build(prepared)

        if not path.startswith("/"):
            logger.error(
                "The S3 driver requires object paths to begin with `/`, got %r. "
                "Please check the configured path template.",
                path,
            )
            raise PathMissingForwardSlashError(
                f"Object path {path!r} must begin with '/'."
            )
        if not path.strip("/"):
            # "/" addresses the bucket itself, a PUT there is not an object upload.
            logger.error(
                "The path template resolved to %r, which names no object. Provide a "
                "file name or use a template that does not depend on one.",
                path,
            )
            raise InvalidPathError(f"Object path {path!r} does not name an object.")

        assert prepared.data is not None
        await self.s3.upload(
            data=prepared.data, path=path, access=AccessControlList.PUBLIC_READ
        )
        logger.debug("Uploaded %s", path)
        return path

    async def get(self, path: str) -> bytes:
        raise UnsupportedOperationError("The S3 driver does not support get.")

    async def delete(self, path: str) -> None:
        raise UnsupportedOperationError("The S3 driver does not support delete.")

    async def close(self) -> None:
        await self.s3.close()
