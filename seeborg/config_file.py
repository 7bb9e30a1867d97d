"""TOML configuration file utilities.

Reading: uses tomllib (stdlib, Python >=3.11)
"""

from __future__ import annotations

import tomllib
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

CONFIG_FILENAME = "seeborg.toml"


def find_config() -> Path | None:
    """Search for seeborg.toml in standard locations.

    Search order:
    1. Current working directory
    2. ~/.config/seeborg/seeborg.toml
    3. Project root (where the seeborg package lives)

    Returns None if not found.
    """
    cwd = Path.cwd() / CONFIG_FILENAME
    if cwd.is_file():
        return cwd

    xdg = Path.home() / ".config" / "seeborg" / CONFIG_FILENAME
    if xdg.is_file():
        return xdg

    project = _PROJECT_ROOT / CONFIG_FILENAME
    if project.is_file():
        return project

    return None


def load_config(path: Path) -> dict:
    """Load and parse a seeborg.toml file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def generate_template() -> str:
    """Generate an annotated seeborg.toml template."""
    return '''\
# SeeBorg Configuration
# Environment variables (SEEBORG_*) fill in anything not set here.

# token = "your-bot-token"
# database_path = "./seeborg_data"
# autosave_period = 600          # seconds
# activity = "with words"
# activity_type = "playing"      # playing | listening | watching | competing
# global_emoji = ["123456789012345678"]
# ignored_users = []
# owners = []
# command_prefix = "!"

[behavior]
# learning = true
# speaking = true
# reply_rate = 1                 # percent
# reply_nick = 100               # percent, when the bot is mentioned
# reacting = false
# react_rate = 1                 # percent

# Per-guild overrides; any behavior key plus ignored_users.
# [guilds."123456789012345678"]
# reacting = true
# react_rate = 5

# Per-channel overrides win over guild overrides.
# [channels."234567890123456789"]
# speaking = false
# ignored_users = ["345678901234567890"]
'''
