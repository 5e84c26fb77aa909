"""Error taxonomy shared by the reconciliation core and its adapters."""

from __future__ import annotations


class ArkiveError(RuntimeError):
    """Base class for all Arkive runtime failures."""


class StoreError(ArkiveError):
    """Raised when the local record store cannot complete an operation."""


class FeedError(ArkiveError):
    """Raised when a remote feed subscription cannot be established or continued."""


class ViewStateError(ArkiveError):
    """Raised when a reconciled view is driven out of its lifecycle order."""


__all__ = ["ArkiveError", "FeedError", "StoreError", "ViewStateError"]
