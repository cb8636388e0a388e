"""Read-only git repository access for testament resolution."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pygit2 import Commit, Tag, discover_repository
from pygit2 import GitError as Pygit2GitError
from pygit2.repository import Repository

if TYPE_CHECKING:
	from collections.abc import Iterator

	from pygit2 import Object, Oid

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
	"""Base class for errors raised while resolving a testament."""


class RepositoryUnavailable(ResolutionError):
	"""No repository metadata exists at or above the given path."""


class MetadataCorrupt(ResolutionError):
	"""Repository metadata exists but cannot be parsed."""


class RepositoryReadError(ResolutionError):
	"""An I/O failure occurred while reading repository metadata."""


class AmbiguousTag(ResolutionError):
	"""The nearest-tag tie-break did not produce a single winner."""


class InvalidOverrideTimestamp(ResolutionError):
	"""The timestamp override is not a non-negative integer."""


@contextlib.contextmanager
def reading_metadata(what: str) -> Iterator[None]:
	"""
	Translate library and OS failures into testament errors.

	Args:
		what: Short description of the read being attempted, used in messages.

	Raises:
		MetadataCorrupt: If pygit2 fails to parse the metadata.
		RepositoryReadError: If the filesystem read fails.

	"""
	try:
		yield
	except ResolutionError:
		raise
	except Pygit2GitError as e:
		msg = f"Failed to read {what}: {e}"
		logger.exception(msg)
		raise MetadataCorrupt(msg) from e
	except OSError as e:
		msg = f"I/O error while reading {what}: {e}"
		logger.exception(msg)
		raise RepositoryReadError(msg) from e


def _nearest_existing(path: Path) -> Path:
	"""Return the path itself or its closest ancestor that exists."""
	path = path.expanduser().absolute()
	for candidate in (path, *path.parents):
		if candidate.exists():
			return candidate
	return path


def _unaccepted_git_entry(start: Path) -> Path | None:
	"""Return the first `.git` directory or gitfile at or above `start`, if any."""
	for candidate in (start, *start.parents):
		entry = candidate / ".git"
		if entry.exists() or entry.is_symlink():
			return entry
	return None


class RepositoryContext:
	"""Read-only view over a git repository using pygit2."""

	def __init__(self, git_dir: Path) -> None:
		"""
		Open the repository whose metadata lives in `git_dir`.

		Raises:
			MetadataCorrupt: If the repository cannot be opened.
			RepositoryReadError: If reading the repository fails at the OS level.

		"""
		self.git_dir = git_dir
		with reading_metadata(f"repository at {git_dir}"):
			self.repo = Repository(str(git_dir))
		logger.debug("Opened repository at %s", self.repo.path)

	@classmethod
	def get_repo_root(cls, path: Path | None = None) -> Path:
		"""
		Find the repository metadata directory for `path` or its ancestors.

		libgit2 silently skips `.git` entries it cannot validate, so a `.git`
		left behind by discovery means the repository is damaged, not absent.

		Raises:
			RepositoryUnavailable: If no repository metadata is found.
			MetadataCorrupt: If a `.git` entry exists but is not a usable repository.

		"""
		start = _nearest_existing(path or Path.cwd())
		with reading_metadata(f"repository discovery from {start}"):
			git_dir = discover_repository(str(start))
		if git_dir is None:
			damaged = _unaccepted_git_entry(start)
			if damaged is not None:
				msg = f"{damaged} exists but is not a valid git repository"
				logger.error(msg)
				raise MetadataCorrupt(msg)
			msg = f"No git repository found at or above {start}"
			logger.debug(msg)
			raise RepositoryUnavailable(msg)
		return Path(git_dir)

	@classmethod
	def discover(cls, path: Path | None = None) -> RepositoryContext:
		"""Locate and open the repository containing `path`."""
		return cls(cls.get_repo_root(path))

	@property
	def head_is_unborn(self) -> bool:
		"""Whether HEAD points at a branch with no commits yet."""
		with reading_metadata("HEAD"):
			return self.repo.head_is_unborn

	@property
	def is_shallow(self) -> bool:
		"""Whether the repository is a shallow clone."""
		with reading_metadata("shallow state"):
			return self.repo.is_shallow

	@property
	def is_bare(self) -> bool:
		"""Whether the repository has no working tree."""
		return self.repo.is_bare

	@property
	def workdir(self) -> Path | None:
		"""Root of the working tree, also for linked worktrees; None when bare."""
		workdir = self.repo.workdir
		return Path(workdir) if workdir else None

	def head_commit(self) -> Commit:
		"""Peel HEAD down to the commit it names."""
		with reading_metadata("HEAD commit"):
			return self.repo.head.peel(Commit)

	def get_branch(self) -> str | None:
		"""
		Get the current branch name of the repository.

		Returns:
			The branch shorthand, or None when HEAD is detached.

		"""
		with reading_metadata("HEAD reference"):
			if self.repo.head_is_detached:
				return None
			return self.repo.head.shorthand or None

	def get_object(self, oid: Oid | str) -> Object | None:
		"""Look up an object by id, returning None when it is absent."""
		with reading_metadata(f"object {oid}"):
			return self.repo.get(oid)

	def parent_ids(self, commit_id: str) -> list[str]:
		"""
		Return the parent ids of a commit, first parent first.

		A commit missing from a shallow clone is a history boundary and has no
		parents. A missing commit in a complete repository is corruption.

		Raises:
			MetadataCorrupt: If the commit is missing or is not a commit.

		"""
		obj = self.get_object(commit_id)
		if obj is None:
			if self.is_shallow:
				logger.debug("Commit %s is past the shallow boundary", commit_id)
				return []
			msg = f"Commit {commit_id} is referenced but missing from the object store"
			logger.error(msg)
			raise MetadataCorrupt(msg)
		if not isinstance(obj, Commit):
			msg = f"Object {commit_id} is not a commit"
			logger.error(msg)
			raise MetadataCorrupt(msg)
		return [str(parent_id) for parent_id in obj.parent_ids]

	def peel_to_commit(self, oid: Oid) -> tuple[Commit | None, bool]:
		"""
		Follow tag objects from `oid` until something that is not a tag.

		Returns:
			The commit reached (or None if the chain ends elsewhere or is
			missing), and whether the first object was an annotated tag.

		"""
		obj = self.get_object(oid)
		annotated = isinstance(obj, Tag)
		seen: set[str] = set()
		while isinstance(obj, Tag):
			key = str(obj.id)
			if key in seen:
				msg = f"Tag object {key} refers back to itself"
				logger.error(msg)
				raise MetadataCorrupt(msg)
			seen.add(key)
			obj = self.get_object(obj.target)
		if isinstance(obj, Commit):
			return obj, annotated
		return None, annotated
