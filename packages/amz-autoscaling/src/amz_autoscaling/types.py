#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import datetime
from dataclasses import dataclass, field
from typing import Self
from xml.etree.ElementTree import Element

from amz_aws_core.xmlutils import find_bool, find_child, find_int, find_text, iter_children
from amz_core.exceptions import SerializationError


def members(element: Element, name: str) -> list[Element]:
    """The ``<member>`` entries of the list element ``name``."""
    container = find_child(element, name)
    if container is None:
        return []
    return list(iter_children(container, "member"))


def member_texts(element: Element, name: str) -> list[str]:
    return [member.text or "" for member in members(element, name)]


def find_timestamp(element: Element, name: str) -> datetime.datetime | None:
    value = find_text(element, name)
    if not value:
        return None
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError as e:
        raise SerializationError(f"{name} is not a timestamp: {value!r}") from e


def request_id(element: Element) -> str:
    metadata = find_child(element, "ResponseMetadata")
    if metadata is None:
        return ""
    return find_text(metadata, "RequestId")


@dataclass(kw_only=True)
class Tag:
    key: str
    value: str = ""
    propagate_at_launch: bool = False
    """Apply the tag to instances launched in the group after it is created."""

    resource_id: str = ""
    """The group the tag applies to. Not needed when creating a group."""

    resource_type: str = ""
    """Only ``auto-scaling-group`` is supported. Sent by default when empty."""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            key=find_text(element, "Key"),
            value=find_text(element, "Value"),
            propagate_at_launch=find_bool(element, "PropagateAtLaunch"),
            resource_id=find_text(element, "ResourceId"),
            resource_type=find_text(element, "ResourceType"),
        )


@dataclass(kw_only=True)
class Instance:
    instance_id: str
    auto_scaling_group_name: str = ""
    availability_zone: str = ""
    health_status: str = ""
    launch_configuration_name: str = ""
    lifecycle_state: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            instance_id=find_text(element, "InstanceId"),
            auto_scaling_group_name=find_text(element, "AutoScalingGroupName"),
            availability_zone=find_text(element, "AvailabilityZone"),
            health_status=find_text(element, "HealthStatus"),
            launch_configuration_name=find_text(element, "LaunchConfigurationName"),
            lifecycle_state=find_text(element, "LifecycleState"),
        )


@dataclass(kw_only=True)
class SuspendedProcess:
    process_name: str
    suspension_reason: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            process_name=find_text(element, "ProcessName"),
            suspension_reason=find_text(element, "SuspensionReason"),
        )


@dataclass(kw_only=True)
class EnabledMetric:
    metric: str
    granularity: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            metric=find_text(element, "Metric"),
            granularity=find_text(element, "Granularity"),
        )


@dataclass(kw_only=True)
class AutoScalingGroup:
    auto_scaling_group_name: str
    auto_scaling_group_arn: str = ""
    availability_zones: list[str] = field(default_factory=list)
    created_time: datetime.datetime | None = None
    default_cooldown: int = 0
    desired_capacity: int = 0
    enabled_metrics: list[EnabledMetric] = field(default_factory=list)
    health_check_grace_period: int = 0
    health_check_type: str = ""
    instances: list[Instance] = field(default_factory=list)
    launch_configuration_name: str = ""
    load_balancer_names: list[str] = field(default_factory=list)
    max_size: int = 0
    min_size: int = 0
    placement_group: str = ""
    status: str = ""
    """Set while the group is being deleted."""

    suspended_processes: list[SuspendedProcess] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    termination_policies: list[str] = field(default_factory=list)
    vpc_zone_identifier: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(
            auto_scaling_group_name=find_text(element, "AutoScalingGroupName"),
            auto_scaling_group_arn=find_text(element, "AutoScalingGroupARN"),
            availability_zones=member_texts(element, "AvailabilityZones"),
            created_time=find_timestamp(element, "CreatedTime"),
            default_cooldown=find_int(element, "DefaultCooldown"),
            desired_capacity=find_int(element, "DesiredCapacity"),
            enabled_metrics=[
                EnabledMetric.from_element(e)
                for e in members(element, "EnabledMetrics")
            ],
            health_check_grace_period=find_int(element, "HealthCheckGracePeriod"),
            health_check_type=find_text(element, "HealthCheckType"),
            instances=[Instance.from_element(e) for e in members(element, "Instances")],
            launch_configuration_name=find_text(element, "LaunchConfigurationName"),
            load_balancer_names=member_texts(element, "LoadBalancerNames"),
            max_size=find_int(element, "MaxSize"),
            min_size=find_int(element, "MinSize"),
            placement_group=find_text(element, "PlacementGroup"),
            status=find_text(element, "Status"),
            suspended_processes=[
                SuspendedProcess.from_element(e)
                for e in members(element, "SuspendedProcesses")
            ],
            tags=[Tag.from_element(e) for e in members(element, "Tags")],
            termination_policies=member_texts(element, "TerminationPolicies"),
            vpc_zone_identifier=find_text(element, "VPCZoneIdentifier"),
        )


@dataclass(kw_only=True)
class SimpleResp:
    """The response of an operation that returns nothing but its request ID."""

    request_id: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        return cls(request_id=request_id(element))


@dataclass(kw_only=True)
class DescribeAutoScalingGroupsResp:
    auto_scaling_groups: list[AutoScalingGroup] = field(default_factory=list)
    next_token: str = ""
    """Pass to the next call to get the following page. Empty on the last page."""

    request_id: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        result = find_child(element, "DescribeAutoScalingGroupsResult")
        if result is None:
            return cls(request_id=request_id(element))
        return cls(
            auto_scaling_groups=[
                AutoScalingGroup.from_element(e)
                for e in members(result, "AutoScalingGroups")
            ],
            next_token=find_text(result, "NextToken"),
            request_id=request_id(element),
        )


@dataclass(kw_only=True)
class DescribeTagsResp:
    tags: list[Tag] = field(default_factory=list)
    next_token: str = ""
    request_id: str = ""

    @classmethod
    def from_element(cls, element: Element) -> Self:
        result = find_child(element, "DescribeTagsResult")
        if result is None:
            return cls(request_id=request_id(element))
        return cls(
            tags=[Tag.from_element(e) for e in members(result, "Tags")],
            next_token=find_text(result, "NextToken"),
            request_id=request_id(element),
        )
