# seeborg/config.py
"""
Configuration for SeeBorg.

Values come from environment variables (via .env file), optionally layered
over a TOML file, and are validated with Pydantic. The config is immutable
for the life of a session; behavior flags are resolved per channel and guild
through :meth:`SeeBorgConfig.resolve`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal, Optional

import structlog
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, NoDecode

from seeborg.config_file import load_config

logger = structlog.get_logger(__name__)

# Resolve .env relative to the project root (one level above seeborg/ package),
# so the config works regardless of the user's current working directory.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


def _coerce_str_list(value: object) -> list[str]:
    """Coerce env-var values into a list of stripped, non-empty strings.

    Accepts:
      - A single int or str  → ["value"]
      - Comma-separated str  → ["a", "b"]
      - JSON array str       → ["a", "b"]
      - An existing sequence → passthrough with str coercion
    """
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, (int, float)):
        return [str(int(value))]
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                return _coerce_str_list(parsed)
        if "," in stripped:
            return [part.strip() for part in stripped.split(",") if part.strip()]
        return [stripped]
    return []


def _check_ids(value: tuple[str, ...]) -> tuple[str, ...]:
    """Reject anything that is not a Discord snowflake (ASCII digits only)."""
    for item in value:
        if not (item.isascii() and item.isdigit()):
            raise ValueError(f"not a Discord id: {item!r}")
    return value


# Discord ids arrive as ints from TOML and strings from env; keep them as str.
# NoDecode hands the raw env string to the validator instead of json.loads.
IdList = Annotated[
    tuple[str, ...], NoDecode, BeforeValidator(_coerce_str_list), AfterValidator(_check_ids)
]

Percentage = Annotated[int, Field(ge=0, le=100)]


class Behavior(BaseModel):
    """Global behavior defaults applied when no override matches."""

    learning: bool = True
    speaking: bool = True
    reply_rate: Percentage = 1
    reply_nick: Percentage = 100
    reacting: bool = False
    react_rate: Optional[Percentage] = 1

    model_config = {"extra": "forbid", "frozen": True}


class BehaviorOverride(BaseModel):
    """Per-guild or per-channel overrides. ``None`` means inherit."""

    learning: Optional[bool] = None
    speaking: Optional[bool] = None
    reply_rate: Optional[Percentage] = None
    reply_nick: Optional[Percentage] = None
    reacting: Optional[bool] = None
    react_rate: Optional[Percentage] = None
    ignored_users: IdList = ()

    model_config = {"extra": "forbid", "frozen": True}


BEHAVIOR_KEYS: frozenset[str] = frozenset(Behavior.model_fields)

ActivityType = Literal["playing", "listening", "watching", "competing"]


class SeeBorgConfig(BaseSettings):
    """Everything one SeeBorg session needs to know about itself."""

    token: Optional[str] = Field(None, alias="SEEBORG_TOKEN")
    database_path: Path = Field(Path("./seeborg_data"), alias="SEEBORG_DATABASE_PATH")
    autosave_period: float = Field(600.0, alias="SEEBORG_AUTOSAVE_PERIOD")

    activity: Optional[str] = Field(None, alias="SEEBORG_ACTIVITY")
    activity_type: ActivityType = Field("playing", alias="SEEBORG_ACTIVITY_TYPE")

    # Accepts: bare value (111), comma-separated (111,222), or JSON array (["111","222"]).
    global_emoji: IdList = Field((), alias="SEEBORG_GLOBAL_EMOJI")
    ignored_users: IdList = Field((), alias="SEEBORG_IGNORED_USERS")
    owners: IdList = Field((), alias="SEEBORG_OWNERS")
    command_prefix: str = Field("!", alias="SEEBORG_COMMAND_PREFIX")

    behavior: Behavior = Field(default_factory=Behavior, alias="SEEBORG_BEHAVIOR")
    guilds: dict[str, BehaviorOverride] = Field(default_factory=dict, alias="SEEBORG_GUILDS")
    channels: dict[str, BehaviorOverride] = Field(default_factory=dict, alias="SEEBORG_CHANNELS")

    model_config = {
        "env_file": _ENV_FILE,
        "extra": "ignore",
        "populate_by_name": True,
        "env_ignore_empty": True,
        "frozen": True,
    }

    @model_validator(mode="before")
    @classmethod
    def stringify_override_ids(cls, data: Any) -> Any:
        # TOML tables keyed by bare ints ("[guilds.123]") still arrive as str,
        # but programmatic callers often pass ints.
        if isinstance(data, dict):
            for key in ("guilds", "channels", "SEEBORG_GUILDS", "SEEBORG_CHANNELS"):
                table = data.get(key)
                if isinstance(table, dict):
                    data[key] = {str(k): v for k, v in table.items()}
        return data

    @field_validator("autosave_period")
    @classmethod
    def clamp_autosave_period(cls, value: float) -> float:
        return max(1.0, float(value))

    @field_validator("activity")
    @classmethod
    def blank_activity_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("command_prefix")
    @classmethod
    def default_command_prefix(cls, value: str) -> str:
        return value or "!"

    # ------------------------------------------------------------------
    # Override resolution
    # ------------------------------------------------------------------

    def resolve(self, key: str, channel_id: object, guild_id: object = None) -> Any:
        """Resolve a behavior flag: channel override, then guild, then global."""
        if key not in BEHAVIOR_KEYS:
            raise KeyError(key)
        channel = self.channels.get(str(channel_id))
        if channel is not None:
            value = getattr(channel, key)
            if value is not None:
                return value
        if guild_id is not None:
            guild = self.guilds.get(str(guild_id))
            if guild is not None:
                value = getattr(guild, key)
                if value is not None:
                    return value
        return getattr(self.behavior, key)

    def is_ignored(self, user_id: object, channel_id: object, guild_id: object = None) -> bool:
        """Return True if the user is on any ignore list that applies here."""
        uid = str(user_id)
        if uid in self.ignored_users:
            return True
        channel = self.channels.get(str(channel_id))
        if channel is not None and uid in channel.ignored_users:
            return True
        if guild_id is not None:
            guild = self.guilds.get(str(guild_id))
            if guild is not None and uid in guild.ignored_users:
                return True
        return False

    def is_owner(self, user_id: object) -> bool:
        return str(user_id) in self.owners


def load_settings(path: Path | None = None, **overrides: Any) -> SeeBorgConfig:
    """Build a :class:`SeeBorgConfig`, reading *path* as TOML when given."""
    data: dict[str, Any] = {}
    if path is not None:
        data = load_config(path)
        logger.info("config.file_loaded", path=str(path))
    data.update(overrides)
    return SeeBorgConfig(**data)
