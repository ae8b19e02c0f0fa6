#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import base64
import datetime
import hashlib
import logging
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Self
from xml.etree.ElementTree import Element

from amz_aws_core.config import ClientConfig
from amz_aws_core.regions import Region, get_region
from amz_aws_core.xmlutils import add_text, parse_document, serialize
from amz_core.classifier import RetryPolicy
from amz_core.interfaces.retries import AttemptStrategy
from amz_core.retries import DEFAULT_ATTEMPT_STRATEGY
from amz_http.aio import HTTPResponse
from amz_http.aio.aiohttp import AIOHTTPClient
from amz_http.aio.pipeline import RequestDescriptor, RequestPipeline
from amz_http.interfaces import HTTPClient
from amz_signers import Credentials, Payload, SigningScope, SigV4Signer

from .errors import S3Error, parse_s3_error
from .lifecycle import LifecycleConfiguration
from .restore import RestoreStatus, Tier, restore_request
from .tagging import parse_tagging, tagging_document
from .types import (
    ACL,
    S3_NAMESPACE,
    CopyObjectResult,
    CopyOptions,
    Delete,
    Key,
    ListResp,
    Options,
    VersionsResp,
    WebsiteConfiguration,
)

logger = logging.getLogger(__name__)

type Headers = dict[str, str | list[str]]

_INVALID_BUCKET_CHARS = frozenset("/:@")


def content_md5(body: bytes) -> str:
    """The base64-encoded MD5 digest sent in ``Content-MD5``."""
    return base64.b64encode(hashlib.md5(body).digest()).decode()


class S3:
    """A client for the object storage service of one region.

    :param credentials: Credentials used to sign every request.
    :param region: The region, or a custom region for an S3-compatible store.
    :param transport: The HTTP client. Defaults to an aiohttp client.
    :param attempt_strategy: How many times, and for how long, to try each request.
    :param retry_policy: Decision for errors that carry none of their own.
    :param clock: Source of signing timestamps.
    """

    def __init__(
        self,
        *,
        credentials: Credentials,
        region: Region,
        transport: HTTPClient | None = None,
        attempt_strategy: AttemptStrategy = DEFAULT_ATTEMPT_STRATEGY,
        retry_policy: RetryPolicy = RetryPolicy.PERMISSIVE,
        clock: Callable[[], datetime.datetime] | None = None,
    ):
        self.region = region
        self.transport = transport or AIOHTTPClient()
        self._pipeline = RequestPipeline(
            transport=self.transport,
            signer=SigV4Signer(
                content_sha256_header=True,
                double_encode_path=False,
                normalize_path=False,
            ),
            credentials=credentials,
            scope=SigningScope(region=region.name, service="s3"),
            endpoint=region.s3_endpoint,
            attempt_strategy=attempt_strategy,
            retry_policy=retry_policy,
            error_parser=parse_s3_error,
            clock=clock,
        )

    @classmethod
    async def from_config(cls, config: ClientConfig | None = None) -> Self:
        """Create a client from resolved configuration.

        :param config: A resolved configuration. If not given, one is resolved from
            the environment and the shared files.
        """
        if config is None:
            config = ClientConfig()
            await config.resolve()
        return cls(
            credentials=config.credentials(),
            region=get_region(config.region, endpoint_url=config.endpoint_url),
            transport=AIOHTTPClient(client_config=config.http_client_config()),
            attempt_strategy=config.attempt_strategy(),
            retry_policy=config.retry_policy,
        )

    def bucket(self, name: str) -> "Bucket":
        if self.region.s3_bucket_endpoint or self.region.s3_lowercase_bucket:
            name = name.lower()
        return Bucket(self, name)

    def location_constraint(self) -> bytes | None:
        """The ``CreateBucketConfiguration`` body the region requires, if any."""
        if not self.region.s3_location_constraint:
            return None
        root = Element("CreateBucketConfiguration", xmlns=S3_NAMESPACE)
        add_text(root, "LocationConstraint", self.region.name)
        return serialize(root)

    def descriptor(
        self,
        *,
        bucket: str,
        path: str = "",
        method: str = "",
        params: list[tuple[str, str]] | None = None,
        headers: Headers | None = None,
        payload: Payload | None = None,
        timeout: float | None = None,
    ) -> RequestDescriptor:
        """Describe a request to ``path`` in ``bucket``.

        Buckets are addressed by path unless the region has a bucket endpoint
        template.

        :raises ValueError: If the bucket name cannot be put in a host name.
        """
        if not path.startswith("/"):
            path = "/" + path
        if self.region.s3_bucket_endpoint:
            if _INVALID_BUCKET_CHARS.intersection(bucket):
                raise ValueError(f"Bad S3 bucket: {bucket!r}")
            base_url = self.region.bucket_endpoint(bucket)
        else:
            base_url = self.region.s3_endpoint
            path = f"/{bucket}{path}"
        return RequestDescriptor(
            method=method,
            path=path,
            params=params or [],
            headers=headers or {},
            payload=payload,
            timeout=timeout,
            base_url=base_url,
        )

    async def send(self, descriptor: RequestDescriptor) -> HTTPResponse:
        """Send a request, retrying as configured. The response body is not read."""
        return await self._pipeline.execute(descriptor)

    async def query(
        self, descriptor: RequestDescriptor, root: str | None = None
    ) -> Element | None:
        """Send a request and parse the response body.

        :param root: The expected root element. If None the body is discarded.
        """
        response = await self.send(descriptor)
        body = await response.consume_body_async()
        if root is None:
            return None
        return parse_document(body, root)

    def build_url(self, descriptor: RequestDescriptor) -> str:
        return self._pipeline.build_request(descriptor).destination.build()

    def presign(self, descriptor: RequestDescriptor, *, expires: int) -> str:
        return self._pipeline.presign(descriptor, expires=expires).build()

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()


class Bucket:
    """Operations on one bucket."""

    def __init__(self, s3: S3, name: str):
        self.s3 = s3
        self.name = name

    def __repr__(self) -> str:
        return f"Bucket(name={self.name!r})"

    def _descriptor(self, path: str = "", **kwargs) -> RequestDescriptor:
        return self.s3.descriptor(bucket=self.name, path=path, **kwargs)

    async def put_bucket(self, acl: ACL = ACL.PRIVATE) -> None:
        """Create the bucket, in the client's region."""
        await self.s3.query(
            self._descriptor(
                "/",
                method="PUT",
                headers={"x-amz-acl": acl.value},
                payload=self.s3.location_constraint(),
            )
        )

    async def delete_bucket(self) -> None:
        """Remove the bucket. It must be empty."""
        await self.s3.query(self._descriptor("/", method="DELETE"))

    async def get(self, path: str) -> bytes:
        """Retrieve the contents of an object."""
        response = await self.get_response(path)
        return await response.consume_body_async()

    async def get_response(
        self,
        path: str,
        headers: Headers | None = None,
        *,
        timeout: float | None = None,
    ) -> HTTPResponse:
        """Retrieve an object, leaving its body to stream.

        The caller must read the body to the end or close the response.
        """
        return await self.s3.send(
            self._descriptor(path, headers=headers, timeout=timeout)
        )

    async def head(self, path: str, headers: Headers | None = None) -> HTTPResponse:
        """Retrieve the headers of an object."""
        response = await self.s3.send(
            self._descriptor(path, method="HEAD", headers=headers)
        )
        await response.close()
        return response

    async def exists(self, path: str) -> bool:
        """Whether the object exists. Access denied is treated as absent."""
        try:
            await self.head(path)
        except S3Error as e:
            if e.status in (403, 404):
                return False
            raise
        return True

    async def put(
        self,
        path: str,
        data: Payload,
        content_type: str = "application/octet-stream",
        acl: ACL = ACL.PRIVATE,
        options: Options | None = None,
        *,
        length: int | None = None,
        headers: Headers | None = None,
        timeout: float | None = None,
    ) -> None:
        """Store an object.

        :param data: The contents. Byte strings and seekable streams can be sent
            again if an attempt fails; other streams get a single attempt.
        :param length: The size of a streamed body. Byte strings need none.
        :param headers: Extra headers. They override the ones set from the other
            arguments.
        """
        request_headers: Headers = {
            "Content-Type": content_type,
            "x-amz-acl": acl.value,
        }
        if length is not None:
            request_headers["Content-Length"] = str(length)
        if options is not None:
            options.add_headers(request_headers)
        for name, value in (headers or {}).items():
            for existing in [k for k in request_headers if k.lower() == name.lower()]:
                del request_headers[existing]
            request_headers[name] = value
        await self.s3.query(
            self._descriptor(
                path,
                method="PUT",
                headers=request_headers,
                payload=data,
                timeout=timeout,
            )
        )

    async def put_copy(
        self,
        path: str,
        source: str,
        acl: ACL = ACL.PRIVATE,
        options: CopyOptions | None = None,
    ) -> CopyObjectResult:
        """Copy ``source``, given as ``<bucket>/<key>``, to ``path`` in this bucket."""
        headers: Headers = {"x-amz-acl": acl.value, "x-amz-copy-source": source}
        if options is not None:
            options.add_headers(headers)
        document = await self.s3.query(
            self._descriptor(path, method="PUT", headers=headers), "CopyObjectResult"
        )
        assert document is not None
        return CopyObjectResult.from_element(document)

    async def delete(self, path: str) -> None:
        await self.s3.query(self._descriptor(path, method="DELETE"))

    async def delete_multi(self, objects: Delete) -> None:
        """Remove up to 1000 objects in one request."""
        body = serialize(objects.to_element())
        await self.s3.query(
            self._descriptor(
                "/",
                method="POST",
                params=[("delete", "")],
                headers={"Content-MD5": content_md5(body), "Content-Type": "text/xml"},
                payload=body,
            )
        )

    async def list(
        self,
        prefix: str = "",
        delimiter: str = "",
        marker: str = "",
        max_keys: int = 0,
    ) -> ListResp:
        """List objects in key order.

        :param prefix: Only list keys that start with this.
        :param delimiter: Group keys sharing a prefix up to the next delimiter into
            ``common_prefixes``.
        :param marker: Start after this key.
        :param max_keys: The most keys and prefixes to return. The service default
            is 1000.
        """
        params = [
            (name, value)
            for name, value in (
                ("delimiter", delimiter),
                ("marker", marker),
                ("prefix", prefix),
            )
            if value
        ]
        if max_keys:
            params.append(("max-keys", str(max_keys)))
        document = await self.s3.query(
            self._descriptor(params=params), "ListBucketResult"
        )
        assert document is not None
        return ListResp.from_element(document)

    async def versions(
        self,
        prefix: str = "",
        delimiter: str = "",
        key_marker: str = "",
        version_id_marker: str = "",
        max_keys: int = 0,
    ) -> VersionsResp:
        """List object versions."""
        params = [("versions", "")]
        params.extend(
            (name, value)
            for name, value in (
                ("delimiter", delimiter),
                ("key-marker", key_marker),
                ("prefix", prefix),
                ("version-id-marker", version_id_marker),
            )
            if value
        )
        if max_keys:
            params.append(("max-keys", str(max_keys)))
        document = await self.s3.query(
            self._descriptor(params=params), "ListVersionsResult"
        )
        assert document is not None
        return VersionsResp.from_element(document)

    async def get_bucket_contents(self) -> dict[str, Key]:
        """Map every key in the bucket to its listing entry."""
        contents: dict[str, Key] = {}
        marker = ""
        while True:
            page = await self.list(marker=marker, max_keys=1000)
            for key in page.contents:
                contents[key.key] = key
            if not page.is_truncated or not page.contents:
                return contents
            # NextMarker is only sent when a delimiter was given.
            marker = page.next_marker or page.contents[-1].key

    async def put_bucket_website(self, configuration: WebsiteConfiguration) -> None:
        await self.put_bucket_subresource(
            "website", serialize(configuration.to_element())
        )

    async def put_bucket_subresource(
        self, subresource: str, data: Payload, length: int | None = None
    ) -> None:
        """Store a bucket subresource document such as ``website`` or ``cors``."""
        headers: Headers = {}
        if length is not None:
            headers["Content-Length"] = str(length)
        await self.s3.query(
            self._descriptor(
                "/",
                method="PUT",
                params=[(subresource, "")],
                headers=headers,
                payload=data,
            )
        )

    def url(self, path: str) -> str:
        """An unsigned URL for the object. Only works for public objects."""
        return self.s3.build_url(self._descriptor(path))

    def signed_url(self, path: str, expires: int | datetime.datetime) -> str:
        """A URL anyone can use to retrieve the object until it expires.

        :param expires: Seconds the URL remains valid, or the time it expires. A
            datetime without a timezone is taken to be UTC.
        """
        if isinstance(expires, datetime.datetime):
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=datetime.UTC)
            remaining = expires - datetime.datetime.now(datetime.UTC)
            expires = int(remaining.total_seconds())
        return self.s3.presign(self._descriptor(path), expires=expires)

    async def put_object_tagging(self, path: str, tags: Mapping[str, str]) -> None:
        """Replace the tags of an object."""
        await self.s3.query(
            self._descriptor(
                path,
                method="PUT",
                params=[("tagging", "")],
                payload=serialize(tagging_document(tags)),
            )
        )

    async def get_object_tagging(self, path: str) -> dict[str, str]:
        document = await self.s3.query(
            self._descriptor(path, params=[("tagging", "")]), "Tagging"
        )
        assert document is not None
        return parse_tagging(document)

    async def get_lifecycle(self) -> LifecycleConfiguration:
        document = await self.s3.query(
            self._descriptor(params=[("lifecycle", "")]), "LifecycleConfiguration"
        )
        assert document is not None
        configuration = LifecycleConfiguration.from_element(document)
        if configuration.is_unclean():
            logger.debug("Lifecycle of %s has unrecognized elements", self.name)
        return configuration

    async def put_lifecycle(self, configuration: LifecycleConfiguration) -> None:
        body = serialize(configuration.to_element())
        await self.s3.query(
            self._descriptor(
                "/",
                method="PUT",
                params=[("lifecycle", "")],
                headers={"Content-MD5": content_md5(body)},
                payload=body,
            )
        )

    async def delete_lifecycle(self) -> None:
        await self.s3.query(
            self._descriptor("/", method="DELETE", params=[("lifecycle", "")])
        )

    async def restore_object(
        self, path: str, days: int, tier: Tier = Tier.STANDARD
    ) -> bool:
        """Start restoring an archived object for ``days`` days.

        :returns: True if a restore was started, False if a restored copy already
            exists.
        """
        response = await self.s3.send(
            self._descriptor(
                path,
                method="POST",
                params=[("restore", "")],
                payload=serialize(restore_request(days, tier)),
            )
        )
        await response.close()
        return response.status == 202

    async def get_restore_status(self, path: str) -> RestoreStatus:
        response = await self.head(path)
        return RestoreStatus.from_headers(
            {f.name.lower(): f.as_string() for f in response.fields}
        )
