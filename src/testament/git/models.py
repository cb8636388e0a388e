"""Data model for resolved working-tree testaments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

SHORT_HASH_LENGTH = 9


class ModificationKind(str, Enum):
	"""Kind of divergence between the working tree and HEAD."""

	ADDED = "added"
	MODIFIED = "modified"
	DELETED = "deleted"
	RENAMED = "renamed"
	TYPE_CHANGED = "type-changed"
	UNTRACKED = "untracked"

	@property
	def precedence(self) -> int:
		"""Rank used when one path shows several states; higher wins."""
		return _KIND_PRECEDENCE[self]


_KIND_PRECEDENCE = {
	ModificationKind.UNTRACKED: 0,
	ModificationKind.ADDED: 1,
	ModificationKind.MODIFIED: 2,
	ModificationKind.TYPE_CHANGED: 3,
	ModificationKind.RENAMED: 4,
	ModificationKind.DELETED: 5,
}


class FallbackReason(str, Enum):
	"""Why a testament could not be built from a commit."""

	NO_REPOSITORY = "no-repository"
	NO_COMMIT = "no-commit"


@dataclass(frozen=True)
class CommitInfo:
	"""
	The commit HEAD resolved to.

	`commit_offset` is kept for callers that want local time; rendering always
	uses UTC.

	"""

	hash: str
	"""Full hex object id."""

	commit_time: int
	"""Committer timestamp in seconds since the epoch."""

	commit_offset: int = 0
	"""Committer timezone offset in minutes east of UTC."""

	short_length: int = SHORT_HASH_LENGTH

	@property
	def hash_short(self) -> str:
		"""Abbreviated hash."""
		return self.hash[: self.short_length]


@dataclass(frozen=True)
class TagInfo:
	"""The nearest tag reachable from HEAD."""

	name: str
	commits_since: int
	annotated: bool = False

	def __post_init__(self) -> None:
		"""Reject negative distances."""
		if self.commits_since < 0:
			msg = f"commits_since must be non-negative, got {self.commits_since}"
			raise ValueError(msg)


@dataclass(frozen=True)
class Modification:
	"""One path that differs from HEAD."""

	path: str
	kind: ModificationKind


@dataclass(frozen=True)
class RepositoryTestament:
	"""Testament for a repository with a resolvable HEAD commit."""

	commit: CommitInfo
	tag: TagInfo | None = None
	branch: str | None = None
	modifications: tuple[Modification, ...] = field(default_factory=tuple)

	@property
	def modification_count(self) -> int:
		"""Number of modified paths."""
		return len(self.modifications)

	@property
	def is_dirty(self) -> bool:
		"""Whether the working tree differs from HEAD."""
		return bool(self.modifications)


@dataclass(frozen=True)
class FallbackTestament:
	"""Testament used when there is no repository or no commit to describe."""

	fallback_time: int
	reason: FallbackReason = FallbackReason.NO_REPOSITORY


Testament = RepositoryTestament | FallbackTestament
