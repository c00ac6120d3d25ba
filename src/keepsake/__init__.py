# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

import time
from datetime import UTC, datetime


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def now_millis() -> int:
    """Wall-clock epoch milliseconds, used to qualify backup names."""
    return time.time_ns() // 1_000_000
