"""Tests for working-tree modification enumeration."""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from pygit2 import GitError as Pygit2GitError
from pygit2.enums import FileStatus

from testament.git.models import Modification, ModificationKind
from testament.git.status import collect_modifications, kind_for_flags, working_tree_modifications
from testament.git.utils import MetadataCorrupt, RepositoryContext

if TYPE_CHECKING:
	from tests.base import RepoBuilder


@pytest.mark.unit
class TestKindForFlags:
	"""Test the reduction of status flags to one kind."""

	@pytest.mark.parametrize(
		("flags", "expected"),
		[
			(FileStatus.WT_MODIFIED, ModificationKind.MODIFIED),
			(FileStatus.INDEX_MODIFIED, ModificationKind.MODIFIED),
			(FileStatus.CONFLICTED, ModificationKind.MODIFIED),
			(FileStatus.INDEX_NEW, ModificationKind.ADDED),
			(FileStatus.WT_NEW, ModificationKind.UNTRACKED),
			(FileStatus.WT_DELETED, ModificationKind.DELETED),
			(FileStatus.INDEX_RENAMED, ModificationKind.RENAMED),
			(FileStatus.WT_TYPECHANGE, ModificationKind.TYPE_CHANGED),
		],
	)
	def test_single_flag(self, flags: int, expected: ModificationKind) -> None:
		"""Each status bit maps to its kind."""
		assert kind_for_flags(flags) is expected

	def test_strongest_flag_wins(self) -> None:
		"""A file staged as new and then deleted from disk counts as deleted."""
		assert kind_for_flags(FileStatus.INDEX_NEW | FileStatus.WT_DELETED) is ModificationKind.DELETED

	def test_clean_and_ignored(self) -> None:
		"""Clean and ignored paths are not modifications."""
		assert kind_for_flags(FileStatus.CURRENT) is None
		assert kind_for_flags(FileStatus.IGNORED) is None


@pytest.mark.unit
class TestCollectModifications:
	"""Test deduplication and filtering of observations."""

	def test_precedence_order(self) -> None:
		"""Kinds rank deleted > renamed > type-changed > modified > added > untracked."""
		ranked = sorted(ModificationKind, key=lambda kind: kind.precedence, reverse=True)

		assert ranked == [
			ModificationKind.DELETED,
			ModificationKind.RENAMED,
			ModificationKind.TYPE_CHANGED,
			ModificationKind.MODIFIED,
			ModificationKind.ADDED,
			ModificationKind.UNTRACKED,
		]

	def test_one_entry_per_path(self) -> None:
		"""A path seen several times is kept once with its strongest kind."""
		entries = [
			("a.txt", ModificationKind.ADDED),
			("a.txt", ModificationKind.MODIFIED),
			("b.txt", ModificationKind.RENAMED),
			("b.txt", ModificationKind.MODIFIED),
		]

		assert collect_modifications(entries) == (
			Modification("a.txt", ModificationKind.MODIFIED),
			Modification("b.txt", ModificationKind.RENAMED),
		)

	def test_sorted_by_path(self) -> None:
		"""Output order does not depend on input order."""
		entries = [("z", ModificationKind.MODIFIED), ("a", ModificationKind.ADDED), ("m", ModificationKind.DELETED)]

		assert [m.path for m in collect_modifications(entries)] == ["a", "m", "z"]

	def test_untracked_excluded_by_default(self) -> None:
		"""Untracked paths only count when asked for."""
		entries = [("new.txt", ModificationKind.UNTRACKED), ("old.txt", ModificationKind.MODIFIED)]

		assert collect_modifications(entries) == (Modification("old.txt", ModificationKind.MODIFIED),)
		assert len(collect_modifications(entries, include_untracked=True)) == 2

	def test_empty(self) -> None:
		"""No observations means no modifications."""
		assert collect_modifications([]) == ()


@pytest.mark.git
class TestWorkingTreeModifications:
	"""Test status collection against real repositories."""

	def _modifications(self, builder: RepoBuilder, *, include_untracked: bool = False) -> tuple[Modification, ...]:
		context = RepositoryContext(builder.path / ".git")
		return working_tree_modifications(context, include_untracked=include_untracked)

	def test_clean_tree(self, repo_builder: RepoBuilder) -> None:
		"""A freshly committed tree has no modifications."""
		repo_builder.commit(files={"a.txt": "a\n"})

		assert self._modifications(repo_builder) == ()

	def test_each_kind_of_change(self, repo_builder: RepoBuilder) -> None:
		"""Edited, deleted and staged files are all reported."""
		repo_builder.commit(files={"edit.txt": "one\n", "gone.txt": "bye\n"})
		repo_builder.write("edit.txt", "edited twice\n")
		(repo_builder.path / "gone.txt").unlink()
		repo_builder.write("staged.txt", "new\n")
		repo_builder.stage("staged.txt")

		assert self._modifications(repo_builder) == (
			Modification("edit.txt", ModificationKind.MODIFIED),
			Modification("gone.txt", ModificationKind.DELETED),
			Modification("staged.txt", ModificationKind.ADDED),
		)

	def test_untracked_files(self, repo_builder: RepoBuilder) -> None:
		"""Untracked files show up only when included."""
		repo_builder.commit(files={"a.txt": "a\n"})
		repo_builder.write("scratch.txt", "temp\n")

		assert self._modifications(repo_builder) == ()
		assert self._modifications(repo_builder, include_untracked=True) == (
			Modification("scratch.txt", ModificationKind.UNTRACKED),
		)

	def test_ignored_files_never_count(self, repo_builder: RepoBuilder) -> None:
		"""Files matched by .gitignore are not modifications."""
		repo_builder.commit(files={".gitignore": "*.log\n"})
		repo_builder.write("build.log", "noise\n")

		assert self._modifications(repo_builder, include_untracked=True) == ()

	def test_count_grows_with_each_change(self, repo_builder: RepoBuilder) -> None:
		"""Changing one more tracked file adds exactly one modification."""
		repo_builder.commit(files={"a.txt": "a\n", "b.txt": "b\n"})
		repo_builder.write("a.txt", "changed\n")
		before = len(self._modifications(repo_builder))
		repo_builder.write("b.txt", "changed\n")

		assert len(self._modifications(repo_builder)) == before + 1

	def test_bare_repository(self) -> None:
		"""A bare repository has no working tree to compare."""
		context = MagicMock(spec=RepositoryContext)
		context.is_bare = True
		context.repo = MagicMock()

		assert working_tree_modifications(context) == ()
		context.repo.status.assert_not_called()

	def test_status_failure_is_metadata_error(self, repo_builder: RepoBuilder) -> None:
		"""A libgit2 failure while reading status is reported as corrupt metadata."""
		repo_builder.commit()
		context = RepositoryContext(repo_builder.path / ".git")

		with (
			patch.object(context, "repo") as mock_repo,
			pytest.raises(MetadataCorrupt, match="working tree status"),
		):
			mock_repo.is_bare = False
			mock_repo.status.side_effect = Pygit2GitError("index is corrupt")
			working_tree_modifications(context)

	def test_staged_rename(self, repo_builder: RepoBuilder) -> None:
		"""A rename staged in the index is one renamed file, not a deletion and an addition."""
		repo_builder.commit(files={"old.txt": "unchanged content\n" * 8, "keep.txt": "k\n"})
		(repo_builder.path / "old.txt").rename(repo_builder.path / "new.txt")
		index = repo_builder.repo.index
		index.remove("old.txt")
		index.add("new.txt")
		index.write()

		assert self._modifications(repo_builder) == (Modification("new.txt", ModificationKind.RENAMED),)

	@pytest.mark.skipif(sys.platform == "win32", reason="Symlinks need privileges on Windows")
	def test_type_change(self, repo_builder: RepoBuilder) -> None:
		"""Replacing a tracked file with a symlink is a type change."""
		repo_builder.commit(files={"target.txt": "t\n", "link.txt": "plain file\n"})
		(repo_builder.path / "link.txt").unlink()
		os.symlink("target.txt", repo_builder.path / "link.txt")

		assert self._modifications(repo_builder) == (Modification("link.txt", ModificationKind.TYPE_CHANGED),)

	def test_submodules_are_ignored(self, repo_builder: RepoBuilder) -> None:
		"""A submodule with new commits or local edits does not make the tree dirty."""
		repo_builder.commit()
		context = RepositoryContext(repo_builder.path / ".git")

		with patch.object(context, "repo") as mock_repo:
			mock_repo.is_bare = False
			mock_repo.status.return_value = {
				"vendor/lib": FileStatus.WT_MODIFIED,
				"a.txt": FileStatus.WT_MODIFIED,
			}
			mock_repo.diff.return_value.deltas = []
			mock_repo.listall_submodules.return_value = ["vendor/lib"]
			modifications = working_tree_modifications(context)

		assert modifications == (Modification("a.txt", ModificationKind.MODIFIED),)
