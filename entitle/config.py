"""
Settings, read once from the environment (and a ``.env`` file, if any).

Every variable is prefixed ``ENTITLE_``. Bad values raise ValueError at
load time rather than on the first request.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Literal

from dotenv import load_dotenv

from entitle.checkout import ReplayPolicy
from entitle.directory import Identity

PREFIX = "ENTITLE_"

type PromoBackend = Literal["database", "remote"]
type AuthBackend = Literal["remote", "static"]


def _parse_tokens(raw: str) -> dict[str, Identity]:
    """``token:user_id[:email],...`` → token table for the static authenticator."""
    tokens: dict[str, Identity] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(":", 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Malformed {PREFIX}STATIC_TOKENS entry: expected token:user_id[:email]")
        tokens[parts[0]] = Identity(user_id=parts[1], email=parts[2] if len(parts) == 3 else "")
    return tokens


def _choice[T: str](name: str, value: str, allowed: tuple[T, ...]) -> T:
    for option in allowed:
        if value == option:
            return option
    raise ValueError(f"{PREFIX}{name} must be one of {', '.join(allowed)}; got {value!r}")


@dataclass(frozen=True, slots=True)
class Settings:
    gateway_key_id: str = ""
    gateway_key_secret: str = field(default="", repr=False)
    gateway_api_base: str = "https://api.razorpay.com"
    directory_url: str = ""
    directory_service_key: str = field(default="", repr=False)
    database_url: str = "sqlite+aiosqlite:///entitle.db"
    promo_backend: PromoBackend = "database"
    auth_backend: AuthBackend = "remote"
    static_tokens: Mapping[str, Identity] = field(default_factory=dict[str, Identity], repr=False)
    replay_policy: ReplayPolicy = ReplayPolicy.EXTEND_FROM_NOW
    plan_term_days: int = 365
    http_timeout: float = 10.0
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @property
    def plan_term(self) -> timedelta:
        return timedelta(days=self.plan_term_days)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """
        Build settings from ``env`` (default: ``os.environ`` after ``load_dotenv()``).
        """
        if env is None:
            load_dotenv()
            env = os.environ

        def get(name: str, default: str = "") -> str:
            return env.get(PREFIX + name, default).strip()

        try:
            replay = ReplayPolicy(get("REPLAY_POLICY", ReplayPolicy.EXTEND_FROM_NOW.value).lower())
        except ValueError:
            raise ValueError(
                f"{PREFIX}REPLAY_POLICY must be one of "
                f"{', '.join(p.value for p in ReplayPolicy)}"
            ) from None

        try:
            term_days = int(get("PLAN_TERM_DAYS", "365"))
            timeout = float(get("HTTP_TIMEOUT", "10.0"))
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting: {e}") from None
        if term_days <= 0:
            raise ValueError(f"{PREFIX}PLAN_TERM_DAYS must be positive")
        if timeout <= 0:
            raise ValueError(f"{PREFIX}HTTP_TIMEOUT must be positive")

        log_level = get("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"{PREFIX}LOG_LEVEL: unknown level {log_level!r}")

        origins = tuple(o.strip() for o in get("CORS_ORIGINS", "*").split(",") if o.strip())

        return cls(
            gateway_key_id=get("GATEWAY_KEY_ID"),
            gateway_key_secret=get("GATEWAY_KEY_SECRET"),
            gateway_api_base=get("GATEWAY_API_BASE", "https://api.razorpay.com"),
            directory_url=get("DIRECTORY_URL"),
            directory_service_key=get("DIRECTORY_SERVICE_KEY"),
            database_url=get("DATABASE_URL", "sqlite+aiosqlite:///entitle.db"),
            promo_backend=_choice("PROMO_BACKEND", get("PROMO_BACKEND", "database").lower(), ("database", "remote")),
            auth_backend=_choice("AUTH_BACKEND", get("AUTH_BACKEND", "remote").lower(), ("remote", "static")),
            static_tokens=_parse_tokens(get("STATIC_TOKENS")),
            replay_policy=replay,
            plan_term_days=term_days,
            http_timeout=timeout,
            cors_origins=origins or ("*",),
            log_level=log_level,
        )

    def check_service(self) -> None:
        """Raise ValueError if the HTTP service cannot be assembled from these settings."""
        if not self.gateway_key_id or not self.gateway_key_secret:
            raise ValueError(f"{PREFIX}GATEWAY_KEY_ID and {PREFIX}GATEWAY_KEY_SECRET are required")
        needs_directory_url = self.auth_backend == "remote" or self.promo_backend == "remote"
        if needs_directory_url and not (self.directory_url and self.directory_service_key):
            raise ValueError(
                f"{PREFIX}DIRECTORY_URL and {PREFIX}DIRECTORY_SERVICE_KEY are required "
                "for remote auth or promo backends"
            )


__all__ = (
    "Settings",
    "PREFIX",
)
