"""
Commit-graph distance queries.

The graph is described only by a function returning the parent ids of a
commit, so it can be walked over pygit2 objects or over plain mappings in
tests. Distances are edge counts from HEAD along the shortest ancestry path;
first parents are explored before the other parents of a merge.

"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from collections.abc import Callable, Container, Iterator, Sequence

logger = logging.getLogger(__name__)


class CommitGraph:
	"""Breadth-first ancestry walker with memoized parents and distances."""

	def __init__(self, parent_lookup: Callable[[str], Sequence[str]]) -> None:
		"""
		Initialize the walker.

		Args:
			parent_lookup: Returns the parent ids of a commit id, first parent first.

		"""
		self._parent_lookup = parent_lookup
		self._parents: dict[str, tuple[str, ...]] = {}
		self.distances: dict[str, int] = {}

	def parents(self, commit_id: str) -> tuple[str, ...]:
		"""Parents of `commit_id`, looked up once."""
		if commit_id not in self._parents:
			self._parents[commit_id] = tuple(self._parent_lookup(commit_id))
		return self._parents[commit_id]

	def walk(self, head: str) -> Iterator[tuple[str, int]]:
		"""
		Yield every ancestor of `head` (itself included) with its distance.

		Commits come out in non-decreasing distance order, each exactly once.

		"""
		self.distances = {head: 0}
		queue: deque[str] = deque([head])
		while queue:
			commit_id = queue.popleft()
			distance = self.distances[commit_id]
			yield commit_id, distance
			for parent_id in self.parents(commit_id):
				if parent_id not in self.distances:
					self.distances[parent_id] = distance + 1
					queue.append(parent_id)

	def nearest(self, head: str, targets: Container[str]) -> tuple[int, list[str]] | None:
		"""
		Find the targets closest to `head`.

		Args:
			head: Commit to start from.
			targets: Commit ids of interest.

		Returns:
			The minimal distance and every target at that distance (in walk
			order), or None if no target is an ancestor of `head`.

		"""
		best: int | None = None
		found: list[str] = []
		for commit_id, distance in self.walk(head):
			if best is not None and distance > best:
				break
			if commit_id in targets:
				best = distance
				found.append(commit_id)
		if best is None:
			return None
		logger.debug("Nearest of %d target(s) found at distance %d", len(found), best)
		return best, found

	def distance(self, head: str, target: str) -> int | None:
		"""Distance from `head` back to `target`, or None if unreachable."""
		result = self.nearest(head, {target})
		return None if result is None else result[0]
