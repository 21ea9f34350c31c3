# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""S3 Storage uploads files to S3-compatible object stores using AWS Signature
Version 4 signed requests."""

from ._http import URI, Field, Fields
from ._identity import Credentials
from .client import AccessControlList, S3Client
from .config import S3DriverConfig
from .drivers import NetworkDriver, S3Driver
from .entity import FileEntity
from .path_builder import ConfigurablePathBuilder, PathBuilder
from .payload import (
    NO_PAYLOAD,
    UNSIGNED,
    BytesPayload,
    NoPayload,
    Payload,
    UnsignedPayload,
    hash_payload,
)
from .signers import SigV4Signer
from .storage import Storage, configure, get_storage

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "NO_PAYLOAD",
    "UNSIGNED",
    "URI",
    "AccessControlList",
    "BytesPayload",
    "ConfigurablePathBuilder",
    "Credentials",
    "Field",
    "Fields",
    "FileEntity",
    "NetworkDriver",
    "NoPayload",
    "PathBuilder",
    "Payload",
    "S3Client",
    "S3Driver",
    "S3DriverConfig",
    "SigV4Signer",
    "Storage",
    "UnsignedPayload",
    "configure",
    "get_storage",
    "hash_payload",
)
