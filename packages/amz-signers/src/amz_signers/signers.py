#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import datetime
import hmac
import logging
from dataclasses import dataclass
from hashlib import sha256

from ._http import Field, HTTPRequest, URI
from ._identity import Credentials
from ._io import ByteStream, Seekable
from .canonical import (
    EMPTY_SHA256_HASH,
    UNSIGNED_PAYLOAD,
    canonical_request,
    encode_query,
    format_canonical_path,
    format_canonical_query,
    normalize_signing_fields,
    parse_query,
)
from .exceptions import SigningError

logger = logging.getLogger(__name__)

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGNING_KEY_PREFIX: str = "AWS4"
SCOPE_TERMINATOR: str = "aws4_request"

_READ_CHUNK_SIZE = 64 * 1024


@dataclass(kw_only=True, frozen=True)
class SigningScope:
    """The region and service a signing key is restricted to."""

    region: str
    service: str
    terminator: str = SCOPE_TERMINATOR

    def credential_scope(self, amz_date: str) -> str:
        """Format ``<YYYYMMDD>/<region>/<service>/<terminator>``.

        :param amz_date: A timestamp in ISO 8601 basic format. Only the date part is
            used.
        """
        return f"{amz_date[0:8]}/{self.region}/{self.service}/{self.terminator}"


def format_timestamp(timestamp: datetime.datetime) -> str:
    """Format a timestamp in ISO 8601 basic form, converting it to UTC first."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(datetime.UTC)
    return timestamp.strftime(SIGV4_TIMESTAMP_FORMAT)


class SigV4Signer:
    """Request signer for applying the Signature Version 4 algorithm.

    :param payload_signing_enabled: Hash the payload of requests sent over TLS. Plain
        HTTP payloads are always hashed when they can be read more than once.
    :param content_sha256_header: Send the payload hash in ``X-Amz-Content-SHA256``,
        as object storage requires.
    :param double_encode_path: Encode the request path twice in the canonical
        request. Object storage expects the path to be encoded once.
    :param normalize_path: Remove dot segments and repeated slashes from the path
        before encoding. Object keys must be left as they are.
    """

    def __init__(
        self,
        *,
        payload_signing_enabled: bool = True,
        content_sha256_header: bool = False,
        double_encode_path: bool = True,
        normalize_path: bool = True,
    ):
        self.payload_signing_enabled = payload_signing_enabled
        self.content_sha256_header = content_sha256_header
        self.double_encode_path = double_encode_path
        self.normalize_path = normalize_path

    def sign(
        self,
        *,
        request: HTTPRequest,
        credentials: Credentials,
        scope: SigningScope,
        timestamp: datetime.datetime | None = None,
        payload_hash: str | None = None,
    ) -> str:
        """Sign a request in place and return the ``Authorization`` value.

        ``X-Amz-Date``, ``X-Amz-Security-Token`` (for session credentials),
        ``X-Amz-Content-SHA256`` (if enabled) and ``Authorization`` are set on the
        request. Signing the same request twice with the same timestamp yields the
        same result.

        :param request: The request to sign.
        :param credentials: Credentials to derive the signing key from.
        :param scope: The region and service to sign for.
        :param timestamp: The signing time. Defaults to the current time. Callers
            that retry must pass a new timestamp for each attempt.
        :param payload_hash: A precomputed payload hash or ``UNSIGNED-PAYLOAD``. If
            not given it is computed from the request body.
        :raises SigningError: If the request cannot be canonicalized or the
            credentials have expired.
        """
        self._validate_credentials(credentials)
        amz_date = format_timestamp(timestamp or datetime.datetime.now(datetime.UTC))
        self._apply_required_fields(
            request=request, amz_date=amz_date, credentials=credentials
        )
        if payload_hash is None:
            payload_hash = self.compute_payload_hash(request=request)
        if self.content_sha256_header:
            request.fields.set_field(
                Field(name="X-Amz-Content-SHA256", values=[payload_hash])
            )

        signing_fields = normalize_signing_fields(
            fields=request.fields, destination=request.destination
        )
        canonical = self.canonical_request(
            request=request, signing_fields=signing_fields, payload_hash=payload_hash
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical, amz_date=amz_date, scope=scope
        )
        signature = self.signature(
            string_to_sign=string_to_sign,
            secret_key=credentials.secret_access_key,
            amz_date=amz_date,
            scope=scope,
        )
        authorization = self.generate_authorization_field(
            credential=f"{credentials.access_key_id}/{scope.credential_scope(amz_date)}",
            signed_headers=list(signing_fields),
            signature=signature,
        )
        request.fields.set_field(authorization)
        logger.debug(
            "Signed %s %s for %s at %s",
            request.method,
            request.destination.path or "/",
            scope.credential_scope(amz_date),
            amz_date,
        )
        return authorization.as_string()

    def presign(
        self,
        *,
        request: HTTPRequest,
        credentials: Credentials,
        scope: SigningScope,
        expires: int,
        timestamp: datetime.datetime | None = None,
    ) -> URI:
        """Produce a URL that carries its signature in the query string.

        Only the host header is signed and the payload is not hashed.

        :param request: The request to sign. It is not modified.
        :param credentials: Credentials to derive the signing key from.
        :param scope: The region and service to sign for.
        :param expires: Seconds the URL remains valid, from 1 to 604800.
        :param timestamp: The signing time. Defaults to the current time.
        """
        if not 1 <= expires <= 604800:
            raise SigningError(
                f"Presigned URL expiry must be between 1 and 604800 seconds, got "
                f"{expires}."
            )
        self._validate_credentials(credentials)
        amz_date = format_timestamp(timestamp or datetime.datetime.now(datetime.UTC))
        credential_scope = scope.credential_scope(amz_date)

        params = parse_query(request.destination.query)
        params.extend(
            [
                ("X-Amz-Algorithm", SIGV4_ALGORITHM),
                ("X-Amz-Credential", f"{credentials.access_key_id}/{credential_scope}"),
                ("X-Amz-Date", amz_date),
                ("X-Amz-Expires", str(expires)),
                ("X-Amz-SignedHeaders", "host"),
            ]
        )
        if credentials.session_token is not None:
            params.append(("X-Amz-Security-Token", credentials.session_token))

        canonical = canonical_request(
            method=request.method,
            path=self._format_path(request.destination),
            query=format_canonical_query(params),
            signing_fields={"host": request.destination.host_header},
            payload_hash=UNSIGNED_PAYLOAD,
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical, amz_date=amz_date, scope=scope
        )
        signature = self.signature(
            string_to_sign=string_to_sign,
            secret_key=credentials.secret_access_key,
            amz_date=amz_date,
            scope=scope,
        )
        params.append(("X-Amz-Signature", signature))
        return request.destination.with_query(encode_query(params))

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<terminator>
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Hex signature over the string to sign.
        """
        auth_str = (
            f"{SIGV4_ALGORITHM} Credential={credential}, "
            f"SignedHeaders={';'.join(signed_headers)}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def canonical_request(
        self,
        *,
        request: HTTPRequest,
        signing_fields: dict[str, str] | None = None,
        payload_hash: str | None = None,
    ) -> str:
        """Build the canonical request of ``request`` as it currently stands.

        Useful to compare against a service's own canonical request when a
        signature does not match.
        """
        if signing_fields is None:
            signing_fields = normalize_signing_fields(
                fields=request.fields, destination=request.destination
            )
        if payload_hash is None:
            payload_hash = self.compute_payload_hash(request=request)
        return canonical_request(
            method=request.method,
            path=self._format_path(request.destination),
            query=format_canonical_query(parse_query(request.destination.query)),
            signing_fields=signing_fields,
            payload_hash=payload_hash,
        )

    def string_to_sign(
        self, *, canonical_request: str, amz_date: str, scope: SigningScope
    ) -> str:
        """Concatenate the algorithm, signing time, credential scope and the hash of
        the canonical request::

            Algorithm \\n
            RequestDateTime \\n
            CredentialScope \\n
            HashedCanonicalRequest
        """
        return (
            f"{SIGV4_ALGORITHM}\n"
            f"{amz_date}\n"
            f"{scope.credential_scope(amz_date)}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def signing_key(self, *, secret_key: str, amz_date: str, scope: SigningScope) -> bytes:
        """Derive the key scoped to one day, region and service.

        DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        DateRegionKey        = HMAC-SHA256(<DateKey>, "<region>")
        DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<service>")
        SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        """
        k_date = _hmac(f"{SIGNING_KEY_PREFIX}{secret_key}".encode(), amz_date[0:8])
        k_region = _hmac(k_date, scope.region)
        k_service = _hmac(k_region, scope.service)
        return _hmac(k_service, scope.terminator)

    def signature(
        self, *, string_to_sign: str, secret_key: str, amz_date: str, scope: SigningScope
    ) -> str:
        key = self.signing_key(secret_key=secret_key, amz_date=amz_date, scope=scope)
        return _hmac(key, string_to_sign).hex()

    def compute_payload_hash(self, *, request: HTTPRequest) -> str:
        """Hash the request body without consuming it.

        Byte strings and seekable streams are hashed; the stream is returned to its
        original position. Bodies that can only be read once are not hashed.
        """
        if request.destination.scheme == "https" and not self.payload_signing_enabled:
            return UNSIGNED_PAYLOAD

        body = request.body
        if body is None:
            return EMPTY_SHA256_HASH
        if isinstance(body, bytes | bytearray):
            return sha256(body).hexdigest()
        if not (isinstance(body, Seekable) and isinstance(body, ByteStream)):
            return UNSIGNED_PAYLOAD

        checksum = sha256()
        position = body.tell()
        while chunk := body.read(_READ_CHUNK_SIZE):
            checksum.update(chunk)
        body.seek(position)
        return checksum.hexdigest()

    def _format_path(self, destination: URI) -> str:
        return format_canonical_path(
            destination.path,
            double_encode=self.double_encode_path,
            normalize=self.normalize_path,
        )

    def _validate_credentials(self, credentials: Credentials) -> None:
        if not isinstance(credentials, Credentials):
            raise SigningError(
                "Received unexpected value for credentials. Expected Credentials but "
                f"received {type(credentials)}."
            )
        if credentials.is_expired:
            raise SigningError(
                f"Provided credentials expired at {credentials.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _apply_required_fields(
        self, *, request: HTTPRequest, amz_date: str, credentials: Credentials
    ) -> None:
        request.fields.set_field(Field(name="X-Amz-Date", values=[amz_date]))
        if credentials.session_token is not None:
            request.fields.set_field(
                Field(name="X-Amz-Security-Token", values=[credentials.session_token])
            )


def _hmac(key: bytes, value: str) -> bytes:
    return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()
