# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import hmac
import logging
from collections.abc import Callable, Mapping
from hashlib import sha256
from urllib.parse import quote, unquote

from ._http import Field, Fields, uri_encode_path
from ._identity import Credentials
from .payload import NO_PAYLOAD, UNSIGNED_PAYLOAD, Payload, hash_payload

logger = logging.getLogger(__name__)

type Clock = Callable[[], datetime.datetime]

SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_TERMINATOR: str = "aws4_request"
DEFAULT_CONTENT_TYPE: str = "application/x-www-form-urlencoded; charset=utf-8"
SUPPORTED_METHODS: tuple[str, ...] = ("DELETE", "GET", "POST", "PUT")


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    A signer is bound to one set of credentials and is safe to share between
    concurrent uploads: every call to :py:meth:`sign` reads the clock once and keeps
    all intermediate state local.
    """

    def __init__(self, *, credentials: Credentials, clock: Clock | None = None):
        """
        :param credentials: The credentials, region, service and host to sign for.
        :param clock: Returns the signing time. Defaults to the current UTC time.
        """
        self._credentials = credentials
        self._clock = clock or _utc_now

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def amz_date(self) -> str:
        """Render the current signing time in ``X-Amz-Date`` format."""
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.UTC)
        return now.astimezone(datetime.UTC).strftime(SIGV4_TIMESTAMP_FORMAT)

    def sign(
        self,
        *,
        payload: Payload = NO_PAYLOAD,
        method: str = "GET",
        path: str,
        query: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Sign a request and return every header to attach to it.

        :param payload: The body mode. Its hash is included in the signature.
        :param method: HTTP method of the request.
        :param path: Unencoded request path, for example ``/folder/image.png``.
        :param query: Optional query string, with or without the leading ``?``.
        :param headers: Caller headers. They are signed, and on a name collision
            their values win over the generated ``Host``, ``X-Amz-Date`` and
            ``x-amz-content-sha256`` headers.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(
                f"Unsupported HTTP method {method!r}. Expected one of "
                f"{', '.join(SUPPORTED_METHODS)}."
            )

        payload_hash = hash_payload(payload)
        fields = Fields.from_mapping(headers)
        amz_date = self._apply_required_fields(fields=fields, payload_hash=payload_hash)

        # Construct core signing components
        canonical_request = self.canonical_request(
            method=method,
            path=path,
            query=query,
            fields=fields,
            payload_hash=payload_hash,
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, amz_date=amz_date
        )
        signature = self.signature(
            string_to_sign=string_to_sign, date_stamp=amz_date[0:8]
        )

        signed_headers = list(self._normalize_signing_fields(fields=fields))
        credential = f"{self._credentials.access_key_id}/{self.scope(amz_date)}"
        fields.set_field(
            self.generate_authorization_field(
                credential=credential,
                signed_headers=signed_headers,
                signature=signature,
            )
        )
        if "Content-Type" not in fields:
            fields.set_field(Field(name="Content-Type", values=[DEFAULT_CONTENT_TYPE]))

        logger.debug(
            "Signed %s %s with headers: %s", method, path, ";".join(signed_headers)
        )
        return fields.as_dict()

    def _apply_required_fields(self, *, fields: Fields, payload_hash: str) -> str:
        if "Host" not in fields:
            fields.set_field(Field(name="Host", values=[self._credentials.host]))

        if "X-Amz-Date" in fields:
            amz_date = fields["X-Amz-Date"].as_string()
            self._validate_amz_date(amz_date)
        else:
            amz_date = self.amz_date()
            fields.set_field(Field(name="X-Amz-Date", values=[amz_date]))

        if payload_hash != UNSIGNED_PAYLOAD and "x-amz-content-sha256" not in fields:
            fields.set_field(Field(name="x-amz-content-sha256", values=[payload_hash]))
        return amz_date

    def _validate_amz_date(self, amz_date: str) -> None:
        message = f"X-Amz-Date must be formatted as YYYYMMDDTHHMMSSZ, got {amz_date!r}."
        # strptime accepts single digit fields, so the length is checked first.
        if len(amz_date) != 16:
            raise ValueError(message)
        try:
            datetime.datetime.strptime(amz_date, SIGV4_TIMESTAMP_FORMAT)
        except ValueError as e:
            raise ValueError(message) from e

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/aws4_request
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        signed_headers_str = ";".join(signed_headers)
        auth_str = (
            f"{SIGV4_ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers_str}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def canonical_request(
        self,
        *,
        method: str,
        path: str | None,
        query: str | None,
        fields: Fields,
        payload_hash: str,
    ) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>
        """
        normalized_fields = self._normalize_signing_fields(fields=fields)
        canonical_fields = self._format_canonical_fields(fields=normalized_fields)
        return (
            f"{method.upper()}\n"
            f"{uri_encode_path(path)}\n"
            f"{self._format_canonical_query(query=query)}\n"
            f"{canonical_fields}\n"
            f"{';'.join(normalized_fields)}\n"
            f"{payload_hash}"
        )

    def string_to_sign(self, *, canonical_request: str, amz_date: str) -> str:
        """Concatenate the algorithm, the request timestamp, the credential scope and
        the hash of the canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest
        """
        return (
            f"{SIGV4_ALGORITHM}\n"
            f"{amz_date}\n"
            f"{self.scope(amz_date)}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def scope(self, amz_date: str) -> str:
        # Scope format: <YYYYMMDD>/<region>/<service>/aws4_request
        return (
            f"{amz_date[0:8]}/{self._credentials.region}/"
            f"{self._credentials.service}/{SIGV4_TERMINATOR}"
        )

    def signature(self, *, string_to_sign: str, date_stamp: str) -> str:
        """Sign the string to sign with the key derived for ``date_stamp``."""
        signing_key = self.derive_signing_key(date_stamp=date_stamp)
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def derive_signing_key(self, *, date_stamp: str) -> bytes:
        """Derive the signing key scoped to a day, region and service.

        In SigV4, the date, region, service and terminator are hashed in turn, each
        step keyed by the result of the previous one.
        """

        # Components of Signing Key Calculation
        #
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        secret_key = self._credentials.secret_access_key
        k_date = self._hash(key=f"AWS4{secret_key}".encode(), value=date_stamp)
        k_region = self._hash(key=k_date, value=self._credentials.region)
        k_service = self._hash(key=k_region, value=self._credentials.service)
        return self._hash(key=k_service, value=SIGV4_TERMINATOR)

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _format_canonical_query(self, *, query: str | None) -> str:
        if not query:
            return ""

        query_parts: list[tuple[str, str]] = []
        for pair in query.removeprefix("?").split("&"):
            if not pair:
                continue
            key, _, value = pair.partition("=")
            query_parts.append(
                (
                    quote(string=unquote(key), safe=""),
                    quote(string=unquote(value), safe=""),
                )
            )
        # key-value pairs must be in sorted order for their encoded forms.
        return "&".join(f"{key}={value}" for key, value in sorted(query_parts))

    def _normalize_signing_fields(self, *, fields: Fields) -> dict[str, str]:
        normalized_fields = {field.name.lower(): field.as_string() for field in fields}
        return dict(sorted(normalized_fields.items()))

    def _format_canonical_fields(self, *, fields: dict[str, str]) -> str:
        return "".join(f"{key}:{value}\n" for key, value in fields.items())
