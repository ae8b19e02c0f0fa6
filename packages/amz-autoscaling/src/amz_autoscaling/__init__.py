#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""An asyncio client for the scaling-group query API."""

from .client import AutoScaling
from .errors import AutoScalingError
from .params import CreateAutoScalingGroupParams, Filter, UpdateAutoScalingGroupParams
from .types import (
    AutoScalingGroup,
    DescribeAutoScalingGroupsResp,
    DescribeTagsResp,
    EnabledMetric,
    Instance,
    SimpleResp,
    SuspendedProcess,
    Tag,
)

__version__ = "0.1.0"

__all__ = (
    "AutoScaling",
    "AutoScalingError",
    "AutoScalingGroup",
    "CreateAutoScalingGroupParams",
    "DescribeAutoScalingGroupsResp",
    "DescribeTagsResp",
    "EnabledMetric",
    "Filter",
    "Instance",
    "SimpleResp",
    "SuspendedProcess",
    "Tag",
    "UpdateAutoScalingGroupParams",
)
