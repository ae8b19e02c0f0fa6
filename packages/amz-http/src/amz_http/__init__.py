#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from amz_signers import Field, Fields

__version__ = "0.1.0"


def tuples_to_fields(tuples: list[tuple[str, str]]) -> Fields:
    """Convert ``name``, ``value`` tuples to ``Fields``, merging repeated names.

    :param tuples: List of tuples of length 2 with field name and value.
    """
    fields = Fields()
    for name, value in tuples:
        fields.add_field(Field(name=name, values=[value]))
    return fields
