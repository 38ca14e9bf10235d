from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml


def _default_config_path() -> Path:
    return Path(os.getenv("CLOCKTOWER_CONFIG", "config.yaml"))


def _require_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer") from exc


def _require_float(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number") from exc


def _require_str(value: Any, default: str, name: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    return value


def _require_str_list(value: Any, default: tuple[str, ...], name: str) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"{name} must be a list of strings")
    if any(not isinstance(item, str) for item in value):
        raise ValueError(f"{name} must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class DiscordConfig:
    api_base_url: str = "https://discord.com/api/v10"


@dataclass(frozen=True)
class Config:
    """Mover settings.

    Example config.yaml::

        tokens:
          - "<token 1>"
          - "<token 2>"
        night_category: Night Phase
        day_category: Day Phase
        shared_room: Town Square
        facilitator_role: Storyteller
        deadline_seconds: 15
    """

    tokens: tuple[str, ...] = ()
    day_category: str = "Day Phase"
    night_category: str = "Night Phase"
    shared_room: str = "Town Square"
    facilitator_role: str = "Storyteller"
    deadline_seconds: float = 15
    request_timeout_seconds: float = 5
    max_concurrent_requests: int = 3
    log_level: str = "INFO"
    discord: DiscordConfig = field(default_factory=DiscordConfig)

    def validate(self) -> None:
        if not self.tokens:
            raise ValueError("no discord bot tokens specified")
        if not self.night_category:
            raise ValueError("night phase category is empty")
        if not self.day_category:
            raise ValueError("day phase category is empty")
        if not self.shared_room:
            raise ValueError("shared room name is empty")
        if not self.facilitator_role:
            raise ValueError("facilitator role name is empty")
        if self.deadline_seconds <= 0:
            raise ValueError(
                f"invalid deadline {self.deadline_seconds} (must be >0) "
                "for movement operations"
            )
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.max_concurrent_requests <= 0:
            raise ValueError("max_concurrent_requests must be positive")

    def with_env_tokens(self) -> "Config":
        raw = os.getenv("DISCORD_TOKENS")
        if not raw:
            return self
        tokens = tuple(token.strip() for token in raw.split(",") if token.strip())
        return replace(self, tokens=tokens)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Config":
        config_path = Path(path) if path else _default_config_path()
        if not config_path.exists():
            return cls().with_env_tokens()
        raw = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(raw, dict):
            raise ValueError("config.yaml must contain a mapping")
        return cls.from_dict(raw).with_env_tokens()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        defaults = cls()
        discord_data = data.get("discord")
        if not isinstance(discord_data, dict):
            discord_data = {}
        return cls(
            tokens=_require_str_list(data.get("tokens"), defaults.tokens, "tokens"),
            day_category=_require_str(
                data.get("day_category"), defaults.day_category, "day_category"
            ),
            night_category=_require_str(
                data.get("night_category"), defaults.night_category, "night_category"
            ),
            shared_room=_require_str(
                data.get("shared_room"), defaults.shared_room, "shared_room"
            ),
            facilitator_role=_require_str(
                data.get("facilitator_role"),
                defaults.facilitator_role,
                "facilitator_role",
            ),
            deadline_seconds=_require_float(
                data.get("deadline_seconds"),
                defaults.deadline_seconds,
                "deadline_seconds",
            ),
            request_timeout_seconds=_require_float(
                data.get("request_timeout_seconds"),
                defaults.request_timeout_seconds,
                "request_timeout_seconds",
            ),
            max_concurrent_requests=_require_int(
                data.get("max_concurrent_requests"),
                defaults.max_concurrent_requests,
                "max_concurrent_requests",
            ),
            log_level=_require_str(
                data.get("log_level"), defaults.log_level, "log_level"
            ),
            discord=DiscordConfig(
                api_base_url=_require_str(
                    discord_data.get("api_base_url"),
                    defaults.discord.api_base_url,
                    "discord.api_base_url",
                ),
            ),
        )
