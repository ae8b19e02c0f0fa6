#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Configuration, regions and XML helpers shared by the service clients."""

__version__ = "0.1.0"
