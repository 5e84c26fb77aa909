"""Firebase Realtime Database configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

FIREBASE_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class FirebaseConfig:
    """Holds the location and credentials of the remote database."""

    database_url: str
    resilience: ResilienceConfig
    auth_token: str | None = None
    root_path: str = ""

    def collection_path(self, collection: str) -> str:
        """Return the database path of ``collection`` relative to the base URL."""

        prefix = self.root_path.strip("/")
        return f"{prefix}/{collection}" if prefix else collection


def get_firebase_config(*, resilience: ResilienceConfig | None = None) -> FirebaseConfig:
    values = require_env_vars(("FIREBASE_DATABASE_URL",))
    database_url = values["FIREBASE_DATABASE_URL"].rstrip("/")
    return FirebaseConfig(
        database_url=database_url,
        auth_token=optional_env_var("FIREBASE_AUTH_TOKEN"),
        root_path=optional_env_var("FIREBASE_ROOT_PATH") or "",
        resilience=resilience
        or ResilienceConfig(
            name="firebase",
            base_url=database_url,
            timeout_seconds=FIREBASE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        ),
    )
