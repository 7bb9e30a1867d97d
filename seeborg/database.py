"""
Database — persisted per-guild phrase store.

One JSON document per guild at ``<database_path>/<guild_id>.json``:

    {"version": 1, "lines": [...], "words": {"word": [line_index, ...]}}

``lines`` holds every learned line once; ``words`` maps each lowercase word
to the indices of the lines it appears in. Writes go through a temp file in
the same directory and ``os.replace`` so a crash never leaves a torn file.

Only uses: pathlib, json, os, re, tempfile, structlog — no seeborg imports
beyond the error type.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path

import structlog

from seeborg.errors import DatabaseError

logger = structlog.get_logger(__name__)

SCHEMA_VERSION = 1

_WORD_RE = re.compile(r"[\w']+", re.UNICODE)
_URL_RE = re.compile(r"^(?:https?://|www\.)\S+$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def _atomic_write(path: Path, text: str) -> None:
    """Atomic write with tempfile + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.stem}_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def split_words(text: str) -> list[str]:
    """Lowercase word tokens of *text*."""
    return [w.lower() for w in _WORD_RE.findall(text)]


def database_paths(base: Path, guild_id: object) -> tuple[Path, Path]:
    """Return ``(data_path, identity_path)`` for a guild."""
    base = Path(base)
    return base / f"{guild_id}.json", base / f"{guild_id}.txt"


def write_identity_file(path: Path, name: str, guild_id: object) -> bool:
    """Write the human-readable guild name/id sidecar once.

    Returns True if the file was written, False if it already existed.
    """
    if path.exists():
        return False
    _atomic_write(path, f"{name}\r\n{guild_id}")
    return True


class Database:
    """Learned lines for a single guild, loaded from and saved to one file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lines: list[str] = []
        self._line_set: set[str] = set()
        self._words: dict[str, list[int]] = {}
        self.dirty = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Load the file if it exists, otherwise create it empty."""
        if self.path.exists():
            self._load()
        else:
            self._lines, self._line_set, self._words = [], set(), {}
            self._write()
            logger.info("database.created", path=str(self.path))
        self.dirty = False

    def save(self) -> None:
        self._write()
        self.dirty = False
        logger.debug("database.saved", path=str(self.path), lines=len(self._lines))

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DatabaseError(f"Cannot read database {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise DatabaseError(f"Malformed database {self.path}: expected an object")

        lines = [line for line in data.get("lines", []) if isinstance(line, str)]
        self._lines = lines
        self._line_set = set(lines)
        # Rebuild rather than trust the stored index; it is derived data.
        self._words = {}
        for index, line in enumerate(lines):
            self._index_line(index, line)
        logger.info("database.loaded", path=str(self.path), lines=len(lines))

    def _write(self) -> None:
        payload = {"version": SCHEMA_VERSION, "lines": self._lines, "words": self._words}
        _atomic_write(self.path, json.dumps(payload, ensure_ascii=False))

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def learn(self, text: str) -> int:
        """Add every new line of *text*; return how many were added."""
        added = 0
        for raw in text.splitlines():
            line = _WHITESPACE_RE.sub(" ", raw).strip()
            if not line or _URL_RE.match(line) or line in self._line_set:
                continue
            if not split_words(line):
                continue
            index = len(self._lines)
            self._lines.append(line)
            self._line_set.add(line)
            self._index_line(index, line)
            added += 1
        if added:
            self.dirty = True
        return added

    def _index_line(self, index: int, line: str) -> None:
        for word in dict.fromkeys(split_words(line)):
            self._words.setdefault(word, []).append(index)

    def known(self, word: str) -> int:
        """Number of learned lines containing *word*."""
        return len(self._words.get(word.lower(), ()))

    def lines_with(self, word: str) -> list[str]:
        return [self._lines[i] for i in self._words.get(word.lower(), ())]

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def word_count(self) -> int:
        return len(self._words)
