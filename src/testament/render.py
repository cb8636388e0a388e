"""
Rendering of testaments into display strings.

`render` gives the compact single-line form, for example
`1.0.0+14 (651af89ed 2019-04-02) dirty 4 modifications`. `describe` exposes
the individual fields for callers that build their own strings.
`render_with_version` reconciles the testament with the version a package
declares for itself.

"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import assert_never

from pydantic import BaseModel, ConfigDict

from testament.git.models import FallbackReason, FallbackTestament, RepositoryTestament, Testament

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def format_date(timestamp: int) -> str:
	"""Format seconds since the epoch as a UTC `YYYY-MM-DD` date."""
	try:
		return (_EPOCH + timedelta(seconds=timestamp)).date().isoformat()
	except OverflowError:
		logger.debug("Timestamp %d cannot be represented as a date", timestamp)
		return "unknown"


def _dirty_suffix(count: int) -> str:
	if count == 0:
		return ""
	return f" dirty {count} modification{'' if count == 1 else 's'}"


def _render_commit(testament: RepositoryTestament, tag_name: str | None = None, distance: int | None = None) -> str:
	"""Render a repository testament, optionally as though tagged differently."""
	commit = testament.commit
	date = format_date(commit.commit_time)
	tag = testament.tag
	if tag_name is None and tag is not None:
		tag_name = tag.name
		distance = tag.commits_since

	if tag_name is None:
		prefix = f"{testament.branch}-" if testament.branch else ""
		base = f"{prefix}{commit.hash_short} ({date})"
	elif distance:
		base = f"{tag_name}+{distance} ({commit.hash_short} {date})"
	else:
		base = f"{tag_name} ({commit.hash_short} {date})"
	return base + _dirty_suffix(testament.modification_count)


def render(testament: Testament) -> str:
	"""
	Render a testament as a single line.

	Args:
		testament: The resolved testament.

	Returns:
		The display string, without a trailing newline.

	"""
	match testament:
		case RepositoryTestament():
			return _render_commit(testament)
		case FallbackTestament():
			return format_date(testament.fallback_time)
		case _:
			assert_never(testament)


def render_with_version(testament: Testament, package_version: str, trusted_branch: str | None = None) -> str:
	"""
	Render a testament in the light of the package's declared version.

	When the nearest tag does not mention the package version, the version is
	prefixed as `<version> :: <testament>`. A clean build on `trusted_branch`
	is rendered as though `package_version` were tagged at HEAD, for release
	processes that tag only after the build passed.

	Args:
		testament: The resolved testament.
		package_version: Version the package declares.
		trusted_branch: Branch whose clean builds are trusted, if any.

	Returns:
		The display string.

	"""
	if not isinstance(testament, RepositoryTestament) or testament.tag is None:
		return render(testament)

	trusted = trusted_branch is not None and testament.branch == trusted_branch and not testament.is_dirty
	if trusted:
		return _render_commit(testament, tag_name=package_version, distance=0)
	if package_version in testament.tag.name:
		return render(testament)
	return f"{package_version} :: {render(testament)}"


class RenderedFields(BaseModel):
	"""Individual testament fields for building custom version strings."""

	model_config = ConfigDict(frozen=True)

	repo_present: bool
	commit_present: bool
	tag_present: bool
	branch: str | None = None
	commit_hash: str | None = None
	commit_hash_short: str | None = None
	commit_date: str
	tag_name: str | None = None
	tag_distance: int = 0
	modification_count: int = 0
	is_dirty: bool = False
	rendered: str


def describe(
	testament: Testament, package_version: str | None = None, trusted_branch: str | None = None
) -> RenderedFields:
	"""
	Project a testament onto its individual fields.

	Args:
		testament: The resolved testament.
		package_version: When given, it stands in for the tag name of a
			testament without a commit, and `rendered` uses
			`render_with_version`.
		trusted_branch: Passed on to `render_with_version`; ignored without
			a package version.

	Returns:
		RenderedFields for the testament.

	"""
	rendered = (
		render(testament)
		if package_version is None
		else render_with_version(testament, package_version, trusted_branch)
	)
	match testament:
		case RepositoryTestament():
			tag = testament.tag
			return RenderedFields(
				repo_present=True,
				commit_present=True,
				tag_present=tag is not None,
				branch=testament.branch,
				commit_hash=testament.commit.hash,
				commit_hash_short=testament.commit.hash_short,
				commit_date=format_date(testament.commit.commit_time),
				tag_name=tag.name if tag is not None else None,
				tag_distance=tag.commits_since if tag is not None else 0,
				modification_count=testament.modification_count,
				is_dirty=testament.is_dirty,
				rendered=rendered,
			)
		case FallbackTestament():
			return RenderedFields(
				repo_present=testament.reason is FallbackReason.NO_COMMIT,
				commit_present=False,
				tag_present=False,
				commit_date=format_date(testament.fallback_time),
				tag_name=package_version,
				rendered=rendered,
			)
		case _:
			assert_never(testament)
