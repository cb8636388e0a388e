"""
Resolve the state of a working tree into a testament.

The resolver inspects the repository containing a path and reports the HEAD
commit, the nearest reachable tag with its distance, the branch, and the
working-tree modifications. When there is no repository, or the repository
has no commit yet, a fallback testament carrying only a timestamp is returned.
That timestamp comes from a reproducible override (by default the
`SOURCE_DATE_EPOCH` environment variable) when one is set.

"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

from testament.config.config_schema import AppConfigSchema
from testament.git.graph import CommitGraph
from testament.git.models import (
	CommitInfo,
	FallbackReason,
	FallbackTestament,
	RepositoryTestament,
	Testament,
)
from testament.git.status import working_tree_modifications
from testament.git.tags import index_tags, select_nearest_tag
from testament.git.utils import InvalidOverrideTimestamp, RepositoryContext, RepositoryUnavailable

if TYPE_CHECKING:
	from collections.abc import Callable

logger = logging.getLogger(__name__)

# 9999-12-31T23:59:59Z, the last instant a calendar date can be formatted for.
MAX_TIMESTAMP = 253402300799


def parse_override_timestamp(value: str | None) -> int | None:
	"""
	Parse a timestamp override given as decimal seconds since the epoch.

	Args:
		value: Raw override text, or None when no override is set.

	Returns:
		The timestamp, or None when the override is absent or blank.

	Raises:
		InvalidOverrideTimestamp: If the text is not a non-negative integer.

	"""
	if value is None or not value.strip():
		return None
	text = value.strip()
	if not (text.isascii() and text.isdigit()):
		msg = f"Timestamp override {value!r} is not a non-negative integer"
		raise InvalidOverrideTimestamp(msg)
	seconds = int(text)
	if seconds > MAX_TIMESTAMP:
		msg = f"Timestamp override {value!r} is out of range"
		raise InvalidOverrideTimestamp(msg)
	return seconds


def resolve_fallback_time(override: str | None, clock: Callable[[], float] = time.time) -> int:
	"""
	Pick the timestamp recorded when there is no commit to describe.

	A valid override always wins. An absent or invalid override falls through
	to the clock and never raises.

	"""
	try:
		seconds = parse_override_timestamp(override)
	except InvalidOverrideTimestamp as e:
		logger.debug("Ignoring timestamp override: %s", e)
		seconds = None
	if seconds is not None:
		return seconds
	return int(clock())


class RepositoryResolver:
	"""Builds testaments for paths using one configuration."""

	def __init__(self, config: AppConfigSchema | None = None, clock: Callable[[], float] | None = None) -> None:
		"""
		Initialize the resolver.

		Args:
			config: Resolution settings; defaults are used when omitted.
			clock: Wall-clock source for the fallback time.

		"""
		self.config = config or AppConfigSchema()
		self.clock = clock or time.time

	def resolve(
		self,
		path: Path | str | None = None,
		*,
		include_untracked: bool | None = None,
		source_date_epoch: str | None = None,
	) -> Testament:
		"""
		Resolve the testament for the repository containing `path`.

		Args:
			path: Any path inside or outside a working tree (default: cwd).
			include_untracked: Count untracked files; overrides the config.
			source_date_epoch: Timestamp override text; when None the
				environment variable named in the config is read.

		Returns:
			A RepositoryTestament, or a FallbackTestament when there is no
			repository or no commit.

		Raises:
			MetadataCorrupt: If repository metadata exists but cannot be parsed.
			RepositoryReadError: If reading repository metadata fails.
			AmbiguousTag: If the nearest tag cannot be chosen.

		"""
		start = Path(path) if path is not None else Path.cwd()
		try:
			context = RepositoryContext.discover(start)
		except RepositoryUnavailable:
			logger.info("No git repository found for %s, using fallback time", start)
			return self._fallback(FallbackReason.NO_REPOSITORY, source_date_epoch)

		if context.head_is_unborn:
			logger.info("Repository at %s has no commits yet, using fallback time", context.git_dir)
			return self._fallback(FallbackReason.NO_COMMIT, source_date_epoch)

		head = context.head_commit()
		commit = CommitInfo(
			hash=str(head.id),
			commit_time=head.commit_time,
			commit_offset=head.commit_time_offset,
			short_length=self.config.short_hash_length,
		)
		logger.debug("HEAD is %s", commit.hash)

		branch = context.get_branch()
		tag = select_nearest_tag(CommitGraph(context.parent_ids), commit.hash, index_tags(context))

		if include_untracked is None:
			include_untracked = self.config.include_untracked
		modifications = working_tree_modifications(context, include_untracked=include_untracked)

		return RepositoryTestament(commit=commit, tag=tag, branch=branch, modifications=modifications)

	def _fallback(self, reason: FallbackReason, source_date_epoch: str | None) -> FallbackTestament:
		"""Build a fallback testament from the override or the clock."""
		override = source_date_epoch
		if override is None:
			override = os.environ.get(self.config.source_date_epoch_var)
		return FallbackTestament(fallback_time=resolve_fallback_time(override, self.clock), reason=reason)


def resolve_testament(
	path: Path | str | None = None,
	*,
	include_untracked: bool | None = None,
	source_date_epoch: str | None = None,
	config: AppConfigSchema | None = None,
	clock: Callable[[], float] | None = None,
) -> Testament:
	"""Resolve the testament for `path` in one call. See `RepositoryResolver.resolve`."""
	return RepositoryResolver(config, clock=clock).resolve(
		path,
		include_untracked=include_untracked,
		source_date_epoch=source_date_epoch,
	)
