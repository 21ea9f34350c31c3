# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class StorageError(Exception):
    """Top-level exception to capture storage-related errors."""


class ConfigurationError(StorageError, ValueError):
    """A driver could not be built from the supplied configuration."""


class MissingPayloadError(StorageError, ValueError):
    """An upload was requested for an entity that carries no bytes."""


class MissingFileExtensionAndTypeError(StorageError, ValueError):
    """Neither the file extension nor the mime type could be determined."""


class PathMissingForwardSlashError(StorageError, ValueError):
    """The resolved object key does not begin with ``/``."""


class InvalidPathTemplateError(StorageError, ValueError):
    """The object key template references an unknown alias."""


class InvalidUploadDataError(StorageError, ValueError):
    """Encoded upload data (base64, data URI) could not be decoded."""


class InvalidPathError(StorageError):
    """The target URL could not be built from the host and object path."""


class MissingNetworkDriverError(StorageError):
    """The storage facade was used before a driver was configured."""


class StorageAlreadyConfiguredError(StorageError):
    """The process-wide storage handle may only be configured once."""


class UnsupportedOperationError(StorageError, NotImplementedError):
    """The configured driver does not implement the requested operation."""


class StorageHTTPError(StorageError):
    """Base exception type for all exceptions raised by HTTP transports."""


class S3ResponseError(StorageHTTPError):
    """The object store answered with a non-success status code."""

    def __init__(self, status: int, reason: str | None = None, body: bytes = b""):
        self.status = status
        self.reason = reason
        self.body = body
        message = f"Object store responded with status {status}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
