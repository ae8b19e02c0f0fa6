#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Flattening of request values into query API form parameters.

Lists are sent as numbered members starting at 1, e.g.
``AvailabilityZones.member.1=us-east-1a``.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .types import Tag

type Params = dict[str, str]

DEFAULT_RESOURCE_TYPE = "auto-scaling-group"


def make_params(action: str) -> Params:
    return {"Action": action}


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def add_params_list(params: Params, label: str, values: Iterable[str]) -> None:
    """Add ``values`` as ``<label>.1``, ``<label>.2`` and so on."""
    for i, value in enumerate(values, start=1):
        params[f"{label}.{i}"] = value


def add_tag_params(
    params: Params, tags: Sequence[Tag], *, with_resource: bool = True
) -> None:
    """Add tags as ``Tags.member.N.<field>`` parameters.

    :param with_resource: Whether to send the group each tag applies to. Tags given
        when creating a group belong to that group and leave it out.
    """
    for i, tag in enumerate(tags, start=1):
        prefix = f"Tags.member.{i}"
        params[f"{prefix}.Key"] = tag.key
        params[f"{prefix}.Value"] = tag.value
        params[f"{prefix}.PropagateAtLaunch"] = format_bool(tag.propagate_at_launch)
        if with_resource:
            params[f"{prefix}.ResourceId"] = tag.resource_id
            params[f"{prefix}.ResourceType"] = tag.resource_type or DEFAULT_RESOURCE_TYPE


class Filter:
    """Name and value conditions for describe operations.

    Values added under the same name are alternatives.
    """

    def __init__(self) -> None:
        self._values: dict[str, list[str]] = {}

    def __repr__(self) -> str:
        return f"Filter({self._values!r})"

    def __bool__(self) -> bool:
        return bool(self._values)

    def add(self, name: str, *values: str) -> None:
        self._values.setdefault(name, []).extend(values)

    def add_params(self, params: Params) -> None:
        """Add the filter as ``Filters.member.N`` parameters, ordered by name."""
        for i, name in enumerate(sorted(self._values), start=1):
            prefix = f"Filters.member.{i}"
            params[f"{prefix}.Name"] = name
            add_params_list(params, f"{prefix}.Values.member", self._values[name])


def add_paging_params(params: Params, max_records: int, next_token: str) -> None:
    if max_records:
        params["MaxRecords"] = str(max_records)
    if next_token:
        params["NextToken"] = next_token


@dataclass(kw_only=True)
class UpdateAutoScalingGroupParams:
    """Settings of a scaling group. Optional settings left zero or empty are not sent."""

    auto_scaling_group_name: str
    max_size: int = 0
    min_size: int = 0
    desired_capacity: int = 0
    availability_zones: list[str] = field(default_factory=list)
    default_cooldown: int = 0
    health_check_grace_period: int = 0
    health_check_type: str = ""
    instance_id: str = ""
    launch_configuration_name: str = ""
    placement_group: str = ""
    termination_policies: list[str] = field(default_factory=list)
    vpc_zone_identifier: str = ""

    def add_params(self, params: Params) -> None:
        params["AutoScalingGroupName"] = self.auto_scaling_group_name
        # The sizes are always sent.
        params["MaxSize"] = str(self.max_size)
        params["MinSize"] = str(self.min_size)
        params["DesiredCapacity"] = str(self.desired_capacity)
        if self.default_cooldown > 0:
            params["DefaultCooldown"] = str(self.default_cooldown)
        if self.health_check_grace_period > 0:
            params["HealthCheckGracePeriod"] = str(self.health_check_grace_period)
        for name, value in (
            ("HealthCheckType", self.health_check_type),
            ("InstanceId", self.instance_id),
            ("LaunchConfigurationName", self.launch_configuration_name),
            ("PlacementGroup", self.placement_group),
            ("VPCZoneIdentifier", self.vpc_zone_identifier),
        ):
            if value:
                params[name] = value
        add_params_list(params, "AvailabilityZones.member", self.availability_zones)
        add_params_list(
            params, "TerminationPolicies.member", self.termination_policies
        )


@dataclass(kw_only=True)
class CreateAutoScalingGroupParams(UpdateAutoScalingGroupParams):
    """Settings of a new scaling group."""

    load_balancer_names: list[str] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)

    def add_params(self, params: Params) -> None:
        super().add_params(params)
        add_params_list(params, "LoadBalancerNames.member", self.load_balancer_names)
        add_tag_params(params, self.tags, with_resource=False)
