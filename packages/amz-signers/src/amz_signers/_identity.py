#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(kw_only=True, frozen=True)
class Credentials:
    """Access key pair, optionally scoped to a short-lived session."""

    access_key_id: str
    """A unique identifier for a user or role."""

    secret_access_key: str
    """The secret used to derive signing keys. It is never transmitted."""

    session_token: str | None = None
    """A temporary token identifying the current session, if any."""

    expiration: datetime | None = None
    """When the credentials stop being valid. Must be timezone aware."""

    @property
    def is_expired(self) -> bool:
        """Whether the credentials are expired."""
        if self.expiration is None:
            return False
        return datetime.now(tz=UTC) >= self.expiration

    def __repr__(self) -> str:
        session = "None" if self.session_token is None else "'***'"
        return (
            f"Credentials(access_key_id={self.access_key_id!r}, "
            f"secret_access_key='***', session_token={session}, "
            f"expiration={self.expiration!r})"
        )
