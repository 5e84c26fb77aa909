"""Reconciliation defaults for the record views."""

from __future__ import annotations

from dataclasses import dataclass

from arkive.domain.reconciliation.policy import MergePolicy

from .env import env_flag, env_float, optional_env_var
from .errors import ConfigurationError

DEFAULT_FEED_RECONNECT_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    merge_policy: MergePolicy = MergePolicy.REMOTE_WINS
    rollback_on_failure: bool = True
    feed_reconnect_seconds: float = DEFAULT_FEED_RECONNECT_SECONDS


def get_sync_config() -> SyncConfig:
    raw_policy = optional_env_var("ARKIVE_MERGE_POLICY")
    try:
        policy = MergePolicy(raw_policy.lower()) if raw_policy else MergePolicy.REMOTE_WINS
    except ValueError as exc:
        choices = ", ".join(member.value for member in MergePolicy)
        raise ConfigurationError(
            f"Invalid ARKIVE_MERGE_POLICY {raw_policy!r} (expected one of: {choices})"
        ) from exc

    reconnect = env_float("ARKIVE_FEED_RECONNECT_SECONDS", default=DEFAULT_FEED_RECONNECT_SECONDS)
    if reconnect < 0:
        raise ConfigurationError("ARKIVE_FEED_RECONNECT_SECONDS must be non-negative")

    return SyncConfig(
        merge_policy=policy,
        rollback_on_failure=env_flag("ARKIVE_ROLLBACK_ON_FAILURE", default=True),
        feed_reconnect_seconds=reconnect,
    )
