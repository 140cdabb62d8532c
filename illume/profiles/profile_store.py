"""Profile lookup: built-in table first, then profile files."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from threading import Lock
from typing import Iterable

import yaml

from illume.core.errors import ProfileNotFoundError
from illume.util.logger import logger


_BUILTIN_PROFILES_PATH = Path(__file__).resolve().parent / "builtin.yaml"
PROFILE_SUFFIX = ".profile"


def _program_dir() -> Path | None:
    argv0 = sys.argv[0] if sys.argv else ""
    if not argv0:
        return None
    return Path(argv0).resolve().parent


def split_search_path(raw: str) -> list[Path]:
    return [Path(item) for item in raw.split(os.pathsep) if item.strip()]


class ProfileStore:
    def __init__(
        self,
        builtin_path: str | Path = _BUILTIN_PROFILES_PATH,
        search_dirs: Iterable[str | Path] = (),
        include_program_dir: bool = True,
    ) -> None:
        self.builtin_path = Path(builtin_path)
        self.search_dirs = [Path(item) for item in search_dirs]
        if include_program_dir:
            program_dir = _program_dir()
            if program_dir is not None:
                self.search_dirs.append(program_dir)
        self._cache_lock = Lock()
        self._builtin: dict[str, list[str]] | None = None

    def builtin(self) -> dict[str, list[str]]:
        with self._cache_lock:
            if self._builtin is not None:
                return self._builtin
            if not self.builtin_path.exists():
                logger.warning("built-in profile table not found path=%s", self.builtin_path)
                self._builtin = {}
                return self._builtin

            loaded = yaml.safe_load(self.builtin_path.read_text(encoding="utf-8")) or {}
            if not isinstance(loaded, dict):
                raise ProfileNotFoundError(f"invalid profile table format: {self.builtin_path}")
            self._builtin = {str(name): [str(line) for line in lines or []] for name, lines in loaded.items()}
            return self._builtin

    def names(self) -> list[str]:
        return sorted(self.builtin())

    def load(self, name: str) -> str:
        """Return the directive text of a profile.

        Built-in names win. Otherwise the name is opened as a path; a bare
        name (no path separator) that is not a file is also looked up as
        `<name>.profile` in each search directory. When nothing matches, the
        error from opening the literal path is reported.
        """
        lines = self.builtin().get(name)
        if lines is not None:
            logger.debug("profile resolved name=%s source=builtin", name)
            return "".join(f"{line}\n" for line in lines)

        try:
            return self._read(Path(name))
        except OSError as exc:
            original = exc

        if not _has_separator(name):
            for directory in self.search_dirs:
                candidate = directory / f"{name}{PROFILE_SUFFIX}"
                try:
                    return self._read(candidate)
                except OSError:
                    continue

        reason = original.strerror or str(original)
        raise ProfileNotFoundError(f"profile not found: {name}: {reason}") from original

    def _read(self, path: Path) -> str:
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ProfileNotFoundError(f"profile not readable: {path}: {exc.reason}") from exc
        logger.debug("profile resolved path=%s", path)
        if text and not text.endswith("\n"):
            text += "\n"
        return text


def _has_separator(name: str) -> bool:
    return "/" in name or "\\" in name
