# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from hashlib import sha256

UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


@dataclass(frozen=True)
class BytesPayload:
    """A request body whose SHA-256 digest is covered by the signature."""

    data: bytes


@dataclass(frozen=True)
class UnsignedPayload:
    """A request body deliberately left out of the signature."""


@dataclass(frozen=True)
class NoPayload:
    """A request without a body."""


type Payload = BytesPayload | UnsignedPayload | NoPayload

UNSIGNED = UnsignedPayload()
NO_PAYLOAD = NoPayload()


def hash_payload(payload: Payload) -> str:
    """Compute the payload hash placed in the canonical request.

    Bodies are hashed to lowercase hex, unsigned payloads use the literal
    ``UNSIGNED-PAYLOAD`` marker and requests without a body use the digest of the
    empty byte string.
    """
    match payload:
        case BytesPayload(data=data):
            return sha256(data).hexdigest()
        case UnsignedPayload():
            return UNSIGNED_PAYLOAD
        case NoPayload():
            return EMPTY_SHA256_HASH
        case _:
            raise TypeError(f"Expected a Payload but received {type(payload)}.")
