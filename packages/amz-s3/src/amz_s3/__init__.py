#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""An asyncio client for S3-style object storage."""

from .client import S3, Bucket
from .errors import S3Error
from .lifecycle import LifecycleConfiguration
from .restore import RestoreStatus, Tier
from .types import (
    ACL,
    CopyObjectResult,
    CopyOptions,
    Delete,
    Key,
    ListResp,
    Object,
    Options,
    Owner,
    RoutingRule,
    Version,
    VersionsResp,
    WebsiteConfiguration,
)

__version__ = "0.1.0"

__all__ = (
    "ACL",
    "S3",
    "Bucket",
    "CopyObjectResult",
    "CopyOptions",
    "Delete",
    "Key",
    "LifecycleConfiguration",
    "ListResp",
    "Object",
    "Options",
    "Owner",
    "RestoreStatus",
    "RoutingRule",
    "S3Error",
    "Tier",
    "Version",
    "VersionsResp",
    "WebsiteConfiguration",
)
