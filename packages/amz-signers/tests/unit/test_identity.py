#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime, timedelta

import pytest
from amz_signers import Credentials


@pytest.mark.parametrize(
    "session_token,expiration,is_expired",
    [
        ("SESS_TOKEN_1234", None, False),
        (None, datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC), True),
        ("SESS_TOKEN_1234", datetime.now(UTC) + timedelta(hours=1), False),
    ],
)
def test_credentials_expired(
    session_token: str | None, expiration: datetime | None, is_expired: bool
) -> None:
    creds = Credentials(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        session_token=session_token,
        expiration=expiration,
    )
    assert creds.is_expired is is_expired


def test_repr_masks_secrets() -> None:
    creds = Credentials(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        session_token="SESS_TOKEN_1234",
    )
    text = repr(creds)
    assert "AKID1234EXAMPLE" in text
    assert "SECRET1234" not in text
    assert "SESS_TOKEN_1234" not in text
