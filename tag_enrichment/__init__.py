# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Resource tag enrichment for CloudWatch metric streams and log subscriptions.

Resolves the AWS resource behind each telemetry record, then attaches its
tags (and, for metrics, type-specific properties) before Firehose delivers it.
"""

__version__ = "0.1.0"
