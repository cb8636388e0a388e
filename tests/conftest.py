"""Global test fixtures and configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.base import RepoBuilder

if TYPE_CHECKING:
	from pathlib import Path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
	"""Keep the caller's environment and config files out of every test."""
	monkeypatch.delenv("SOURCE_DATE_EPOCH", raising=False)
	monkeypatch.setattr("testament.config.config_loader.xdg_config_home", str(tmp_path / "xdg"))


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
	"""An empty repository in a temporary directory."""
	return RepoBuilder(tmp_path / "repo")


@pytest.fixture
def no_repo_dir(tmp_path: Path) -> Path:
	"""A directory that is not inside any repository."""
	path = tmp_path / "unpacked-source"
	path.mkdir()
	return path
