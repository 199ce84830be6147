"""Shared fixtures for retrieval tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fakes import FakeProvider, RecordingSink

from codescout.config.models import EmbeddingConfig, RetrievalConfig
from codescout.providers.base import EmbeddingProvider
from codescout.retrieval.cache import EmbeddingCacheStore
from codescout.retrieval.orchestrator import RetrievalOrchestrator
from codescout.retrieval.sources import WorkspaceFileSource


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace directory."""
    root = tmp_path / "ws"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def write_files(workspace: Path) -> Callable[[dict[str, str]], None]:
    """Write {relative_path: content} into the workspace."""

    def _write(files: dict[str, str]) -> None:
        for rel, content in files.items():
            path = workspace / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

    return _write


@pytest.fixture
def three_files(write_files: Callable[[dict[str, str]], None]) -> None:
    write_files(
        {
            "alpha.txt": "alpha alpha alpha",
            "beta.txt": "beta beta beta",
            "gamma.txt": "gamma gamma gamma",
        }
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_orchestrator(
    workspace: Path, cache_root: Path, provider: FakeProvider, sink: RecordingSink
) -> Callable[..., RetrievalOrchestrator]:
    """Factory building an orchestrator over the workspace, with overrides."""

    def _make(
        *,
        provider_override: EmbeddingProvider | None = None,
        use_provider: bool = True,
        batch_size: int = 100,
        **settings: Any,
    ) -> RetrievalOrchestrator:
        active = provider_override or provider
        return RetrievalOrchestrator(
            workspace,
            WorkspaceFileSource(workspace),
            active if use_provider else None,
            EmbeddingCacheStore(workspace, cache_root),
            settings=RetrievalConfig(**settings),
            embedding=EmbeddingConfig(batch_size=batch_size),
            progress=sink,
        )

    return _make
