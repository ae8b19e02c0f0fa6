#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Error taxonomy and retry machinery shared by all clients."""

__version__ = "0.1.0"
