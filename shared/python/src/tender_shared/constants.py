"""
constants.py — shared constants used by the writer and its tests.

Source type identifiers, status values, and transport limits are defined
here so the models, mappers, and transport stay in sync.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Final


class SourceType(str, Enum):
    """Fixed source identifier each tender message variant answers."""

    ETENDERS = "eTenders"
    ESKOM = "Eskom"
    TRANSNET = "Transnet"
    SARS = "SARS"
    SANRAL = "SANRAL"


# ---------------------------------------------------------------------------
# Tender status
# ---------------------------------------------------------------------------
STATUS_OPEN: Final[str] = "Open"
STATUS_CLOSED: Final[str] = "Closed"

# Stored closing date when the source did not supply one; counts as Open.
NO_DEADLINE: Final[datetime] = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# SQS limits
# ---------------------------------------------------------------------------
SQS_MAX_BATCH_SIZE: Final[int] = 10
SQS_MAX_GROUP_ID_LENGTH: Final[int] = 128

# Routing key used when a received message carries no MessageGroupId.
UNKNOWN_ROUTING_KEY: Final[str] = "UnknownGroup"
DEFAULT_GROUP_ID: Final[str] = "DefaultGroup"
