#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import re
from datetime import UTC, datetime, timedelta
from io import BytesIO
from urllib.parse import parse_qs

import pytest
from amz_signers import (
    EMPTY_SHA256_HASH,
    UNSIGNED_PAYLOAD,
    URI,
    Credentials,
    Field,
    Fields,
    HTTPRequest,
    SigningError,
    SigningScope,
    SigV4Signer,
)

SIGV4_RE = re.compile(
    r"AWS4-HMAC-SHA256 "
    r"Credential=(?P<access_key>\w+)/\d+/"
    r"(?P<signing_region>[a-z0-9-]+)/"
)

EXAMPLE_CREDENTIALS = Credentials(
    access_key_id="AKIDEXAMPLE",
    secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        access_key_id="AKID123456",
        secret_access_key="EXAMPLE1234SECRET",
        session_token="X123456SESSION",
    )


@pytest.fixture
def scope() -> SigningScope:
    return SigningScope(region="us-west-2", service="s3")


def vanilla_query_request() -> HTTPRequest:
    return HTTPRequest(
        destination=URI(scheme="http", host="host.foo.com", path="/", query="foo=Zoo&foo=aha"),
        method="GET",
        fields=Fields(
            [
                Field(name="Date", values=["Mon, 09 Sep 2011 23:36:00 GMT"]),
                Field(name="Host", values=["host.foo.com"]),
            ]
        ),
    )


class TestPublishedVectors:
    SIGNER = SigV4Signer()
    SCOPE = SigningScope(region="us-east-1", service="host")

    def test_canonical_request(self) -> None:
        canonical = self.SIGNER.canonical_request(request=vanilla_query_request())
        assert canonical == (
            "GET\n"
            "/\n"
            "foo=Zoo&foo=aha\n"
            "date:Mon, 09 Sep 2011 23:36:00 GMT\n"
            "host:host.foo.com\n"
            "\n"
            "date;host\n"
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_string_to_sign(self) -> None:
        canonical = self.SIGNER.canonical_request(request=vanilla_query_request())
        string_to_sign = self.SIGNER.string_to_sign(
            canonical_request=canonical, amz_date="20110909T233600Z", scope=self.SCOPE
        )
        assert string_to_sign == (
            "AWS4-HMAC-SHA256\n"
            "20110909T233600Z\n"
            "20110909/us-east-1/host/aws4_request\n"
            "e25f777ba161a0f1baf778a87faf057187cf5987f17953320e3ca399feb5f00d"
        )

    def test_sign(self) -> None:
        request = vanilla_query_request()
        authorization = self.SIGNER.sign(
            request=request,
            credentials=EXAMPLE_CREDENTIALS,
            scope=self.SCOPE,
            timestamp=datetime(2011, 9, 9, 23, 36, 0, tzinfo=UTC),
        )
        assert authorization == (
            "AWS4-HMAC-SHA256 "
            "Credential=AKIDEXAMPLE/20110909/us-east-1/host/aws4_request, "
            "SignedHeaders=date;host;x-amz-date, "
            "Signature=8f4739ff46dfa3d0e2851c6d105247e97587a14ed1c864aa7e382b5b234ec1ca"
        )
        assert request.fields.get_value("Authorization") == authorization
        assert request.fields.get_value("X-Amz-Date") == "20110909T233600Z"

    def test_list_users(self) -> None:
        request = HTTPRequest(
            destination=URI(
                host="iam.amazonaws.com",
                path="/",
                query="Action=ListUsers&Version=2010-05-08",
            ),
            method="GET",
            fields=Fields(
                [
                    Field(
                        name="Content-Type",
                        values=["application/x-www-form-urlencoded; charset=utf-8"],
                    )
                ]
            ),
        )
        scope = SigningScope(region="us-east-1", service="iam")
        authorization = self.SIGNER.sign(
            request=request,
            credentials=EXAMPLE_CREDENTIALS,
            scope=scope,
            timestamp=datetime(2015, 8, 30, 12, 36, 0, tzinfo=UTC),
        )
        canonical = self.SIGNER.canonical_request(request=request)
        assert canonical == (
            "GET\n"
            "/\n"
            "Action=ListUsers&Version=2010-05-08\n"
            "content-type:application/x-www-form-urlencoded; charset=utf-8\n"
            "host:iam.amazonaws.com\n"
            "x-amz-date:20150830T123600Z\n"
            "\n"
            "content-type;host;x-amz-date\n"
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )
        assert self.SIGNER.string_to_sign(
            canonical_request=canonical, amz_date="20150830T123600Z", scope=scope
        ).endswith("f536975d06c0309214f805bb90ccff089219ecd68b2577efef23edd43b7e1a59")
        assert authorization.endswith(
            "Signature=5d672d79c15b13162d9279b0855cfba6789a8edb4c82c400e06b5924a6f2b5d7"
        )

    def test_signing_key(self) -> None:
        key = self.SIGNER.signing_key(
            secret_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
            amz_date="20120215T000000Z",
            scope=SigningScope(region="us-east-1", service="iam"),
        )
        assert key.hex() == (
            "f4780e2d9f65fa895f9c67b32ce1baf0b0d8a43505a000a1a9e090d414db404d"
        )


class TestSigV4Signer:
    SIGNER = SigV4Signer()

    def _request(self, **kwargs) -> HTTPRequest:
        params = {
            "destination": URI(host="bucket.s3.amazonaws.com", path="/key"),
            "method": "PUT",
            "body": b"123456",
        }
        params.update(kwargs)
        return HTTPRequest(**params)

    def test_sign_adds_required_fields(
        self, credentials: Credentials, scope: SigningScope
    ) -> None:
        request = self._request()
        authorization = self.SIGNER.sign(
            request=request, credentials=credentials, scope=scope
        )
        match = SIGV4_RE.match(authorization)
        assert match is not None
        assert match.group("access_key") == "AKID123456"
        assert match.group("signing_region") == "us-west-2"
        assert "X-Amz-Date" in request.fields
        assert request.fields.get_value("X-Amz-Security-Token") == "X123456SESSION"
        assert "x-amz-security-token" in authorization

    def test_sign_is_idempotent_for_same_timestamp(
        self, credentials: Credentials, scope: SigningScope
    ) -> None:
        request = self._request()
        timestamp = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
        first = self.SIGNER.sign(
            request=request, credentials=credentials, scope=scope, timestamp=timestamp
        )
        second = self.SIGNER.sign(
            request=request, credentials=credentials, scope=scope, timestamp=timestamp
        )
        assert first == second

    def test_signature_changes_with_timestamp(
        self, credentials: Credentials, scope: SigningScope
    ) -> None:
        timestamp = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
        first = self.SIGNER.sign(
            request=self._request(),
            credentials=credentials,
            scope=scope,
            timestamp=timestamp,
        )
        second = self.SIGNER.sign(
            request=self._request(),
            credentials=credentials,
            scope=scope,
            timestamp=timestamp + timedelta(seconds=1),
        )
        assert first != second

    def test_content_sha256_header(
        self, credentials: Credentials, scope: SigningScope
    ) -> None:
        signer = SigV4Signer(content_sha256_header=True)
        request = self._request(body=None)
        authorization = signer.sign(
            request=request, credentials=credentials, scope=scope
        )
        assert request.fields.get_value("X-Amz-Content-SHA256") == EMPTY_SHA256_HASH
        assert "x-amz-content-sha256" in authorization

    def test_seekable_body_is_hashed_and_rewound(self) -> None:
        body = BytesIO(b"abc123456")
        body.seek(3)
        request = self._request(body=body)
        payload_hash = self.SIGNER.compute_payload_hash(request=request)
        assert payload_hash == (
            "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"
        )
        assert body.tell() == 3

    def test_one_shot_body_is_unsigned(self) -> None:
        request = self._request(body=iter([b"123", b"456"]))
        assert self.SIGNER.compute_payload_hash(request=request) == UNSIGNED_PAYLOAD

    def test_payload_signing_disabled_over_tls(self) -> None:
        signer = SigV4Signer(payload_signing_enabled=False)
        assert signer.compute_payload_hash(request=self._request()) == UNSIGNED_PAYLOAD
        insecure = self._request(
            destination=URI(scheme="http", host="localhost", path="/key")
        )
        assert signer.compute_payload_hash(request=insecure) != UNSIGNED_PAYLOAD

    def test_unencodable_path_fails(
        self, credentials: Credentials, scope: SigningScope
    ) -> None:
        request = self._request(
            destination=URI(host="bucket.s3.amazonaws.com", path="/bad\udc80key")
        )
        with pytest.raises(SigningError):
            self.SIGNER.sign(request=request, credentials=credentials, scope=scope)

    def test_expired_credentials_fail(self, scope: SigningScope) -> None:
        expired = Credentials(
            access_key_id="AKID",
            secret_access_key="SECRET",
            expiration=datetime(2020, 1, 1, tzinfo=UTC),
        )
        with pytest.raises(SigningError, match="expired"):
            self.SIGNER.sign(request=self._request(), credentials=expired, scope=scope)

    def test_presign(self, credentials: Credentials, scope: SigningScope) -> None:
        request = self._request(method="GET", body=None)
        uri = self.SIGNER.presign(
            request=request,
            credentials=credentials,
            scope=scope,
            expires=300,
            timestamp=datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC),
        )
        assert uri.host == "bucket.s3.amazonaws.com"
        query = parse_qs(uri.query or "")
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
        assert query["X-Amz-Credential"] == [
            "AKID123456/20240501/us-west-2/s3/aws4_request"
        ]
        assert query["X-Amz-Date"] == ["20240501T120000Z"]
        assert query["X-Amz-Expires"] == ["300"]
        assert query["X-Amz-SignedHeaders"] == ["host"]
        assert query["X-Amz-Security-Token"] == ["X123456SESSION"]
        assert re.fullmatch(r"[0-9a-f]{64}", query["X-Amz-Signature"][0])
        assert "Authorization" not in request.fields

    def test_presign_rejects_long_expiry(
        self, credentials: Credentials, scope: SigningScope
    ) -> None:
        with pytest.raises(SigningError):
            self.SIGNER.presign(
                request=self._request(),
                credentials=credentials,
                scope=scope,
                expires=604801,
            )
