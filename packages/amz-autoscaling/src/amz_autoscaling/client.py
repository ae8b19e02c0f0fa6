#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import datetime
import logging
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Self
from urllib.parse import urlencode
from xml.etree.ElementTree import Element

from amz_aws_core.config import ClientConfig
from amz_aws_core.regions import Region, get_region
from amz_aws_core.xmlutils import parse_document
from amz_core.classifier import RetryPolicy
from amz_core.interfaces.retries import AttemptStrategy
from amz_core.retries import DEFAULT_ATTEMPT_STRATEGY
from amz_http.aio.aiohttp import AIOHTTPClient
from amz_http.aio.pipeline import RequestDescriptor, RequestPipeline
from amz_http.interfaces import HTTPClient
from amz_signers import Credentials, SigningScope, SigV4Signer

from .errors import parse_autoscaling_error
from .params import (
    CreateAutoScalingGroupParams,
    Filter,
    Params,
    UpdateAutoScalingGroupParams,
    add_paging_params,
    add_params_list,
    add_tag_params,
    make_params,
)
from .types import DescribeAutoScalingGroupsResp, DescribeTagsResp, SimpleResp, Tag

logger = logging.getLogger(__name__)

API_VERSION = "2011-01-01"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"


class AutoScaling:
    """A client for the scaling-group query API of one region.

    :param credentials: Credentials used to sign every request.
    :param region: The region whose ``autoscaling_endpoint`` is called.
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
        if not region.autoscaling_endpoint:
            raise ValueError(f"Region {region.name!r} has no autoscaling endpoint")
        self.region = region
        self.transport = transport or AIOHTTPClient()
        self._pipeline = RequestPipeline(
            transport=self.transport,
            signer=SigV4Signer(),
            credentials=credentials,
            scope=SigningScope(region=region.name, service="autoscaling"),
            endpoint=region.autoscaling_endpoint,
            attempt_strategy=attempt_strategy,
            retry_policy=retry_policy,
            error_parser=parse_autoscaling_error,
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

    async def query(self, params: Params) -> Element:
        """Call the action named by ``params["Action"]`` and parse the response.

        :returns: The ``<ActionResponse>`` root element.
        """
        action = params["Action"]
        body = urlencode(sorted({**params, "Version": API_VERSION}.items())).encode()
        logger.debug("Calling %s with %s parameters", action, len(params))
        response = await self._pipeline.execute(
            RequestDescriptor(
                method="POST",
                path="/",
                headers={"Content-Type": FORM_CONTENT_TYPE},
                payload=body,
            )
        )
        return parse_document(await response.consume_body_async(), f"{action}Response")

    async def _simple(self, params: Params) -> SimpleResp:
        return SimpleResp.from_element(await self.query(params))

    async def attach_instances(
        self, name: str, instance_ids: Sequence[str]
    ) -> SimpleResp:
        """Attach running instances to a group."""
        params = make_params("AttachInstances")
        params["AutoScalingGroupName"] = name
        add_params_list(params, "InstanceIds.member", instance_ids)
        return await self._simple(params)

    async def create_auto_scaling_group(
        self, options: CreateAutoScalingGroupParams
    ) -> SimpleResp:
        params = make_params("CreateAutoScalingGroup")
        options.add_params(params)
        return await self._simple(params)

    async def update_auto_scaling_group(
        self, options: UpdateAutoScalingGroupParams
    ) -> SimpleResp:
        params = make_params("UpdateAutoScalingGroup")
        options.add_params(params)
        return await self._simple(params)

    async def delete_auto_scaling_group(
        self, name: str, force_delete: bool = False
    ) -> SimpleResp:
        """Delete a group.

        :param force_delete: Delete the group along with its instances, without
            waiting for them to terminate.
        """
        params = make_params("DeleteAutoScalingGroup")
        params["AutoScalingGroupName"] = name
        if force_delete:
            params["ForceDelete"] = "true"
        return await self._simple(params)

    async def describe_auto_scaling_groups(
        self,
        names: Sequence[str] = (),
        max_records: int = 0,
        next_token: str = "",
    ) -> DescribeAutoScalingGroupsResp:
        """Describe the named groups, or every group if no names are given."""
        params = make_params("DescribeAutoScalingGroups")
        add_paging_params(params, max_records, next_token)
        add_params_list(params, "AutoScalingGroupNames.member", names)
        return DescribeAutoScalingGroupsResp.from_element(await self.query(params))

    async def create_or_update_tags(self, tags: Sequence[Tag]) -> SimpleResp:
        params = make_params("CreateOrUpdateTags")
        add_tag_params(params, tags)
        return await self._simple(params)

    async def delete_tags(self, tags: Sequence[Tag]) -> SimpleResp:
        params = make_params("DeleteTags")
        add_tag_params(params, tags)
        return await self._simple(params)

    async def describe_tags(
        self,
        tag_filter: Filter | None = None,
        max_records: int = 0,
        next_token: str = "",
    ) -> DescribeTagsResp:
        params = make_params("DescribeTags")
        add_paging_params(params, max_records, next_token)
        if tag_filter is not None:
            tag_filter.add_params(params)
        return DescribeTagsResp.from_element(await self.query(params))

    async def set_desired_capacity(
        self, name: str, desired_capacity: int, honor_cooldown: bool = False
    ) -> SimpleResp:
        """Change the number of instances the group should have.

        :param honor_cooldown: Refuse the change while the group is cooling down
            from a previous scaling activity.
        """
        params = make_params("SetDesiredCapacity")
        params["AutoScalingGroupName"] = name
        params["DesiredCapacity"] = str(desired_capacity)
        if honor_cooldown:
            params["HonorCooldown"] = "true"
        return await self._simple(params)

    async def suspend_processes(
        self, name: str, processes: Sequence[str] = ()
    ) -> SimpleResp:
        """Suspend scaling processes of a group, or all of them if none are named."""
        params = make_params("SuspendProcesses")
        params["AutoScalingGroupName"] = name
        add_params_list(params, "ScalingProcesses.member", processes)
        return await self._simple(params)

    async def resume_processes(
        self, name: str, processes: Sequence[str] = ()
    ) -> SimpleResp:
        """Resume suspended processes of a group, or all of them if none are named."""
        params = make_params("ResumeProcesses")
        params["AutoScalingGroupName"] = name
        add_params_list(params, "ScalingProcesses.member", processes)
        return await self._simple(params)

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
