"""Tag indexing and nearest-tag selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from testament.git.models import TagInfo
from testament.git.utils import AmbiguousTag, reading_metadata

if TYPE_CHECKING:
	from collections.abc import Mapping, Sequence

	from testament.git.graph import CommitGraph
	from testament.git.utils import RepositoryContext

logger = logging.getLogger(__name__)

TAG_REF_PREFIX = "refs/tags/"

TagIndex = dict[str, list["TagRef"]]


@dataclass(frozen=True)
class TagRef:
	"""A tag reference peeled down to the commit it marks."""

	refname: str
	commit_id: str
	annotated: bool = False

	@property
	def name(self) -> str:
		"""Tag name without the `refs/tags/` marker."""
		return self.refname.removeprefix(TAG_REF_PREFIX)

	@property
	def sort_key(self) -> tuple[bool, str]:
		"""Annotated tags sort first, then by name."""
		return (not self.annotated, self.name)


def index_tags(context: RepositoryContext) -> TagIndex:
	"""
	Map each tagged commit id to the tags that point at it.

	Annotated tags and chains of tags are peeled to their commit. Tags that
	end at a tree or blob are skipped.

	Args:
		context: Repository to read tags from.

	Returns:
		Dictionary of commit id to tag references.

	"""
	index: TagIndex = {}
	with reading_metadata("tag references"):
		refnames = [name for name in context.repo.references if name.startswith(TAG_REF_PREFIX)]

	for refname in refnames:
		with reading_metadata(f"reference {refname}"):
			target = context.repo.references[refname].resolve().target
		commit, annotated = context.peel_to_commit(target)
		if commit is None:
			logger.debug("Skipping tag %s: it does not point at a commit", refname)
			continue
		commit_id = str(commit.id)
		index.setdefault(commit_id, []).append(TagRef(refname, commit_id, annotated))

	logger.debug("Indexed %d tag(s) across %d commit(s)", len(refnames), len(index))
	return index


def pick_tag(candidates: Sequence[TagRef]) -> TagRef:
	"""
	Choose one tag among tags at the same distance from HEAD.

	Raises:
		AmbiguousTag: If two candidates cannot be told apart.

	"""
	ordered = sorted(candidates, key=lambda tag: tag.sort_key)
	if len(ordered) > 1 and ordered[0].sort_key == ordered[1].sort_key:
		msg = f"Cannot choose between tags {ordered[0].refname!r} and {ordered[1].refname!r}"
		logger.error(msg)
		raise AmbiguousTag(msg)
	return ordered[0]


def select_nearest_tag(graph: CommitGraph, head_id: str, index: Mapping[str, Sequence[TagRef]]) -> TagInfo | None:
	"""
	Select the tag closest to HEAD.

	Args:
		graph: Commit graph used for the ancestry walk.
		head_id: Commit id HEAD resolves to.
		index: Tagged commits, as built by `index_tags`.

	Returns:
		The nearest tag with its distance, or None when no tag is reachable.

	"""
	if not index:
		return None
	nearest = graph.nearest(head_id, index)
	if nearest is None:
		logger.debug("No tag is reachable from %s", head_id)
		return None

	distance, commit_ids = nearest
	winner = pick_tag([tag for commit_id in commit_ids for tag in index[commit_id]])
	logger.debug("Nearest tag is %s, %d commit(s) behind HEAD", winner.name, distance)
	return TagInfo(name=winner.name, commits_since=distance, annotated=winner.annotated)
