#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from amz_core.classifier import ErrorClassifier, RetryPolicy, is_service_error_retryable
from amz_core.exceptions import ServiceError, VerificationError
from amz_core.interfaces.retries import (
    AttemptStrategy,
    Continue,
    Exhausted,
    RetryClassifier,
)
from amz_core.retries import DEFAULT_ATTEMPT_STRATEGY
from amz_signers import (
    URI,
    Credentials,
    Fields,
    HTTPRequest,
    Payload,
    Seekable,
    SigningScope,
    SigV4Signer,
    is_replayable,
)
from amz_signers.canonical import encode_query

from ..interfaces import HTTPClient, HTTPRequestConfiguration
from . import HTTPResponse

logger = logging.getLogger(__name__)

type ErrorParser = Callable[[HTTPResponse, bytes], Exception]

VERIFIED_HEADERS: tuple[str, ...] = ("x-amz-server-side-encryption",)
"""Request headers the response must echo with the same value."""


@dataclass(kw_only=True)
class RequestDescriptor:
    """What to send, independent of any one attempt.

    The caller-supplied fields are not changed by sending. The fields filled in by
    preparation are computed once and reused by every attempt.
    """

    method: str = ""
    """The HTTP method. Defaults to ``GET``."""

    path: str = ""
    """The unencoded resource path, relative to the base URL."""

    params: list[tuple[str, str]] = field(default_factory=list)
    """Query parameters, in order."""

    headers: dict[str, str | list[str]] = field(default_factory=dict)
    """Request headers."""

    payload: Payload | None = None
    """The request body. Byte strings and seekable streams are replayable."""

    timeout: float | None = None
    """Seconds allowed for each attempt, overriding the transport's default."""

    base_url: str = ""
    """Scheme, host and optional path prefix. Defaults to the pipeline's endpoint."""

    prepared: bool = field(default=False, init=False)
    base_uri: URI | None = field(default=None, init=False, repr=False)
    payload_hash: str | None = field(default=None, init=False, repr=False)
    payload_position: int | None = field(default=None, init=False, repr=False)
    replayable: bool = field(default=True, init=False)

    def header(self, name: str) -> str | None:
        """Get a request header regardless of the case of its name."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value if isinstance(value, str) else ",".join(value)
        return None


def parse_service_error(response: HTTPResponse, body: bytes) -> ServiceError:
    """Build an error for a response that carries no structured error body."""
    status = response.status
    return ServiceError(
        f"HTTP response '{status}'",
        status=status,
        fault="server" if status >= 500 else "client",
        is_retry_safe=is_service_error_retryable(
            status=status, server=response.header("server")
        ),
        headers={f.name.lower(): f.as_string() for f in response.fields},
    )


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


class RequestPipeline:
    """Prepare, sign, send and retry requests to one service.

    :param transport: The HTTP client used to send each attempt.
    :param signer: Signs each attempt with a fresh timestamp.
    :param credentials: Credentials used for signing. They are never logged.
    :param scope: The region and service to sign for.
    :param endpoint: Base URL used by descriptors that do not set their own.
    :param attempt_strategy: How many times, and for how long, to try.
    :param retry_policy: Decision for errors that carry none of their own.
    :param classifier: Overrides the classifier built from ``retry_policy``.
    :param error_parser: Converts a non-success response and its body to an error.
    :param clock: Source of signing timestamps.
    """

    def __init__(
        self,
        *,
        transport: HTTPClient,
        signer: SigV4Signer,
        credentials: Credentials,
        scope: SigningScope,
        endpoint: str = "",
        attempt_strategy: AttemptStrategy = DEFAULT_ATTEMPT_STRATEGY,
        retry_policy: RetryPolicy = RetryPolicy.PERMISSIVE,
        classifier: RetryClassifier | None = None,
        error_parser: ErrorParser = parse_service_error,
        is_success: Callable[[int], bool] = is_success_status,
        clock: Callable[[], datetime.datetime] | None = None,
    ):
        self.transport = transport
        self.signer = signer
        self.credentials = credentials
        self.scope = scope
        self.endpoint = endpoint
        self.attempt_strategy = attempt_strategy
        self.classifier = classifier or ErrorClassifier(retry_policy)
        self._error_parser = error_parser
        self._is_success = is_success
        self._clock = clock or _utcnow

    def prepare(self, descriptor: RequestDescriptor) -> None:
        """Fill in the derived fields of ``descriptor``.

        Preparing an already prepared descriptor does nothing.
        """
        if descriptor.prepared:
            return
        if not descriptor.method:
            descriptor.method = "GET"
        if not descriptor.path.startswith("/"):
            descriptor.path = "/" + descriptor.path
        descriptor.base_uri = URI.parse(descriptor.base_url or self.endpoint)

        payload = descriptor.payload
        descriptor.replayable = is_replayable(payload)
        if isinstance(payload, Seekable):
            descriptor.payload_position = payload.tell()
        descriptor.payload_hash = self.signer.compute_payload_hash(
            request=HTTPRequest(
                destination=descriptor.base_uri, method=descriptor.method, body=payload
            )
        )
        descriptor.prepared = True
        logger.debug(
            "Prepared %s %s at %s (replayable=%s)",
            descriptor.method,
            descriptor.path,
            descriptor.base_uri.netloc,
            descriptor.replayable,
        )

    async def execute(self, descriptor: RequestDescriptor) -> HTTPResponse:
        """Send the request, retrying failed attempts the strategy allows.

        A payload that cannot be replayed gets a single attempt.

        :returns: The first successful response. Its body is not read.
        :raises Exception: The error of the last attempt, unchanged.
        """
        self.prepare(descriptor)
        attempt = self.attempt_strategy.start()
        await attempt.next()
        while True:
            try:
                return await self._send_attempt(descriptor)
            except Exception as error:
                if not descriptor.replayable:
                    logger.debug("Payload cannot be replayed, not retrying: %r", error)
                    raise
                if not self.classifier.is_retryable(error):
                    logger.debug("Not retrying: %r", error)
                    raise
                match await attempt.next(error):
                    case Exhausted():
                        logger.debug("Giving up %s %s", descriptor.method, descriptor.path)
                        raise
                    case Continue(count=count):
                        logger.debug(
                            "Retrying %s %s (attempt %s) after %r",
                            descriptor.method,
                            descriptor.path,
                            count,
                            error,
                        )

    def build_request(self, descriptor: RequestDescriptor) -> HTTPRequest:
        """Build the unsigned request an attempt would send."""
        self.prepare(descriptor)
        return self._build_request(descriptor)

    def presign(self, descriptor: RequestDescriptor, *, expires: int) -> URI:
        """Produce a URL for ``descriptor`` that carries its own signature.

        :param expires: Seconds the URL remains valid.
        """
        return self.signer.presign(
            request=self.build_request(descriptor),
            credentials=self.credentials,
            scope=self.scope,
            expires=expires,
            timestamp=self._clock(),
        )

    async def _send_attempt(self, descriptor: RequestDescriptor) -> HTTPResponse:
        request = self._build_request(descriptor)
        self.signer.sign(
            request=request,
            credentials=self.credentials,
            scope=self.scope,
            timestamp=self._clock(),
            payload_hash=descriptor.payload_hash,
        )
        response = await self.transport.send(
            request, request_config=HTTPRequestConfiguration(timeout=descriptor.timeout)
        )
        if not self._is_success(response.status):
            body = await response.consume_body_async()
            raise self._error_parser(response, body)
        await self._verify(descriptor, response)
        return response

    def _build_request(self, descriptor: RequestDescriptor) -> HTTPRequest:
        base = descriptor.base_uri
        assert base is not None
        payload = descriptor.payload
        if isinstance(payload, Seekable) and descriptor.payload_position is not None:
            # A previous attempt may have read part of the stream.
            payload.seek(descriptor.payload_position)
        return HTTPRequest(
            destination=URI(
                scheme=base.scheme,
                host=base.host,
                port=base.port,
                path=(base.path or "").rstrip("/") + descriptor.path,
                query=encode_query(descriptor.params) or None,
            ),
            method=descriptor.method,
            body=descriptor.payload,
            fields=Fields.from_mapping(descriptor.headers),
        )

    async def _verify(
        self, descriptor: RequestDescriptor, response: HTTPResponse
    ) -> None:
        for name in VERIFIED_HEADERS:
            requested = descriptor.header(name)
            if requested is None:
                continue
            received = response.header(name)
            if received != requested:
                await response.close()
                raise VerificationError(
                    f"Service did not honor {name} request: expected {requested!r} "
                    f"but got {received!r}",
                    status=response.status,
                    request_id=response.header("x-amz-request-id"),
                )


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)
