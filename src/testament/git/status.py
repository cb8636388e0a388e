"""Working-tree modification enumeration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pygit2.enums import DeltaStatus, DiffFind, FileStatus

from testament.git.models import Modification, ModificationKind
from testament.git.utils import reading_metadata

if TYPE_CHECKING:
	from collections.abc import Iterable

	from testament.git.utils import RepositoryContext

logger = logging.getLogger(__name__)

# Status bits observed on either the HEAD-to-index or the index-to-workdir side.
STATUS_KINDS: tuple[tuple[int, ModificationKind], ...] = (
	(FileStatus.INDEX_DELETED | FileStatus.WT_DELETED, ModificationKind.DELETED),
	(FileStatus.INDEX_RENAMED | FileStatus.WT_RENAMED, ModificationKind.RENAMED),
	(FileStatus.INDEX_TYPECHANGE | FileStatus.WT_TYPECHANGE, ModificationKind.TYPE_CHANGED),
	(FileStatus.INDEX_MODIFIED | FileStatus.WT_MODIFIED | FileStatus.CONFLICTED, ModificationKind.MODIFIED),
	(FileStatus.INDEX_NEW, ModificationKind.ADDED),
	(FileStatus.WT_NEW, ModificationKind.UNTRACKED),
)


def kind_for_flags(flags: int) -> ModificationKind | None:
	"""
	Reduce a path's status flags to a single modification kind.

	Returns:
		The highest-precedence kind present, or None for clean or ignored paths.

	"""
	for mask, kind in STATUS_KINDS:
		if flags & mask:
			return kind
	return None


def collect_modifications(
	entries: Iterable[tuple[str, ModificationKind]], *, include_untracked: bool = False
) -> tuple[Modification, ...]:
	"""
	Deduplicate observed changes by path, keeping the strongest kind per path.

	Args:
		entries: (path, kind) observations, possibly several per path.
		include_untracked: Whether untracked paths count as modifications.

	Returns:
		Modifications sorted by path.

	"""
	strongest: dict[str, ModificationKind] = {}
	for path, kind in entries:
		current = strongest.get(path)
		if current is None or kind.precedence > current.precedence:
			strongest[path] = kind

	return tuple(
		Modification(path=path, kind=kind)
		for path, kind in sorted(strongest.items())
		if include_untracked or kind is not ModificationKind.UNTRACKED
	)


def staged_renames(context: RepositoryContext) -> dict[str, str]:
	"""
	Find renames recorded in the index relative to HEAD.

	Status flags alone report a staged rename as a deletion plus an addition;
	telling them apart needs similarity detection on the HEAD-to-index diff.

	Returns:
		Dictionary of old path to new path.

	"""
	commit = context.head_commit()
	with reading_metadata("staged changes"):
		diff = context.repo.diff(commit.tree, cached=True)
		diff.find_similar(flags=DiffFind.FIND_RENAMES)
		return {
			delta.old_file.path: delta.new_file.path for delta in diff.deltas if delta.status == DeltaStatus.RENAMED
		}


def submodule_paths(context: RepositoryContext) -> frozenset[str]:
	"""Paths of the submodules registered in the repository."""
	with reading_metadata("submodules"):
		return frozenset(context.repo.listall_submodules())


def working_tree_modifications(
	context: RepositoryContext, *, include_untracked: bool = False
) -> tuple[Modification, ...]:
	"""
	List how the index and working tree differ from HEAD.

	Ignored files and submodules are never reported. A staged rename counts
	once, under its new path. A bare repository has no working tree and so no
	modifications.

	"""
	if context.is_bare:
		logger.debug("Bare repository, skipping working tree status")
		return ()

	with reading_metadata("working tree status"):
		status = context.repo.status(untracked_files="normal" if include_untracked else "no", ignored=False)
	renames = staged_renames(context)
	submodules = submodule_paths(context)

	entries = [(new_path, ModificationKind.RENAMED) for new_path in renames.values()]
	for path, flags in status.items():
		if path in submodules:
			continue
		if path in renames:
			# The index deletion is the old half of the rename
			flags &= ~FileStatus.INDEX_DELETED
		kind = kind_for_flags(flags)
		if kind is not None:
			entries.append((path, kind))

	modifications = collect_modifications(entries, include_untracked=include_untracked)
	logger.debug("Found %d modification(s) in the working tree", len(modifications))
	return modifications
