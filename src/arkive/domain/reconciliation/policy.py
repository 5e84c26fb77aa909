"""Precedence policy for records known both locally and remotely.

``REMOTE_WINS`` lets the cloud copy replace the local one regardless of timestamps
and is the default. ``LATEST_WINS`` uses the normalised recency instead and keeps the
local copy only when it is strictly newer.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arkive.domain.model import Record


class MergePolicy(StrEnum):
    REMOTE_WINS = "remote_wins"
    LATEST_WINS = "latest_wins"

    def prefer(self, local: Record | None, remote: Record) -> Record:
        """Return the record that should occupy the view for ``remote.id``."""

        if local is None or self is MergePolicy.REMOTE_WINS:
            return remote
        return local if local.recency > remote.recency else remote
