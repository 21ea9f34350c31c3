# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass


@dataclass(kw_only=True, frozen=True)
class Credentials:
    """Everything needed to sign requests for one object store backend."""

    access_key_id: str
    """A unique identifier for the user or role signing requests."""

    secret_access_key: str
    """The secret used to derive per-day signing keys. Never sent on the wire."""

    region: str
    """The region the signature is scoped to, for example ``eu-west-1``."""

    service: str = "s3"
    """The service name the signature is scoped to."""

    host: str
    """The value of the ``Host`` header, for example ``bucket.s3.amazonaws.com``."""

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key_id={self.access_key_id!r}, "
            f"region={self.region!r}, service={self.service!r}, host={self.host!r})"
        )
