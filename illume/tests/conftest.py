from pathlib import Path

import pytest
import yaml

from illume.core.context import InterpretContext, RequestState
from illume.profiles.profile_store import ProfileStore


@pytest.fixture
def make_store(tmp_path: Path):
    def _make(profiles: dict | None = None) -> ProfileStore:
        table = tmp_path / "builtin.yaml"
        table.write_text(yaml.safe_dump(profiles or {}), encoding="utf-8")
        return ProfileStore(builtin_path=table, search_dirs=[tmp_path], include_program_dir=False)

    return _make


@pytest.fixture
def make_ctx(make_store):
    def _make(profiles: dict | None = None, environ: dict | None = None) -> InterpretContext:
        return InterpretContext(
            state=RequestState(),
            profiles=make_store(profiles),
            environ=environ or {},
        )

    return _make
