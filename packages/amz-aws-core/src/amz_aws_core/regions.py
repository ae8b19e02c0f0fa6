#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass

BUCKET_PLACEHOLDER = "${bucket}"


@dataclass(kw_only=True, frozen=True)
class Region:
    """Endpoints and addressing rules for one region.

    ``s3_bucket_endpoint`` is a URL template containing ``${bucket}``. When it is
    empty, buckets are addressed by path under ``s3_endpoint``.
    """

    name: str
    s3_endpoint: str = ""
    s3_bucket_endpoint: str = ""
    s3_location_constraint: bool = False
    s3_lowercase_bucket: bool = False
    autoscaling_endpoint: str = ""

    def bucket_endpoint(self, bucket: str) -> str:
        """Substitute ``bucket`` into the bucket endpoint template."""
        return self.s3_bucket_endpoint.replace(BUCKET_PLACEHOLDER, bucket)


def _amazon_region(name: str) -> Region:
    return Region(
        name=name,
        s3_endpoint=f"https://s3-{name}.amazonaws.com",
        s3_location_constraint=True,
        s3_lowercase_bucket=True,
        autoscaling_endpoint=f"https://autoscaling.{name}.amazonaws.com",
    )


US_EAST = Region(
    name="us-east-1",
    s3_endpoint="https://s3.amazonaws.com",
    autoscaling_endpoint="https://autoscaling.us-east-1.amazonaws.com",
)
US_WEST = _amazon_region("us-west-1")
US_WEST_2 = _amazon_region("us-west-2")
EU_WEST = _amazon_region("eu-west-1")
AP_SOUTHEAST = _amazon_region("ap-southeast-1")
AP_SOUTHEAST_2 = _amazon_region("ap-southeast-2")
AP_NORTHEAST = _amazon_region("ap-northeast-1")
SA_EAST = _amazon_region("sa-east-1")

REGIONS: dict[str, Region] = {
    r.name: r
    for r in (
        US_EAST,
        US_WEST,
        US_WEST_2,
        EU_WEST,
        AP_SOUTHEAST,
        AP_SOUTHEAST_2,
        AP_NORTHEAST,
        SA_EAST,
    )
}


def get_region(name: str, *, endpoint_url: str | None = None) -> Region:
    """Look up a region by name.

    When ``endpoint_url`` is given, a custom region is returned that sends every
    request to it with path-style bucket addressing, as S3-compatible stores
    expect. A ``${bucket}`` placeholder in the URL selects virtual-host
    addressing instead.

    :raises KeyError: If the name is unknown and no endpoint is given.
    """
    if endpoint_url:
        endpoint_url = endpoint_url.rstrip("/")
        if BUCKET_PLACEHOLDER in endpoint_url:
            return Region(
                name=name,
                s3_bucket_endpoint=endpoint_url,
                autoscaling_endpoint=endpoint_url,
            )
        return Region(
            name=name, s3_endpoint=endpoint_url, autoscaling_endpoint=endpoint_url
        )
    try:
        return REGIONS[name]
    except KeyError:
        raise KeyError(f"Unknown region {name!r}; pass an endpoint_url") from None
