"""Error reporting helpers shared by the testament commands."""

from __future__ import annotations

import logging
from typing import NoReturn

import typer

from testament.git.utils import AmbiguousTag, MetadataCorrupt, RepositoryReadError, ResolutionError
from testament.utils.log_setup import console, display_error_summary, display_warning_summary

logger = logging.getLogger(__name__)

SIGINT_EXIT_CODE = 130

_RESOLUTION_HINTS: tuple[tuple[type[ResolutionError], str], ...] = (
	(MetadataCorrupt, "The repository looks damaged or partially cloned. Try `git fsck` or a fresh clone."),
	(RepositoryReadError, "Check that the repository files are readable by this user."),
	(AmbiguousTag, "Two tags point at equally near commits and cannot be ordered; remove one of them."),
)


def resolution_hint(error: ResolutionError) -> str | None:
	"""Suggest what a user can do about a resolution failure, if anything."""
	for error_type, hint in _RESOLUTION_HINTS:
		if isinstance(error, error_type):
			return hint
	return None


def show_error(message: str, exception: Exception | None = None, hint: str | None = None) -> None:
	"""
	Display an error summary on stderr.

	Args:
	        message: The error message to display
	        exception: Optional exception whose text is shown as details
	        hint: Optional suggestion printed after the details

	"""
	parts = [message]
	if exception:
		parts.append(f"Details: {exception!s}")
		logger.debug("Error occurred", exc_info=exception)
	if hint:
		parts.append(hint)
	display_error_summary("\n\n".join(parts))


def show_warning(message: str) -> None:
	"""Display a warning summary on stderr."""
	display_warning_summary(message)


def exit_with_error(
	message: str, exit_code: int = 1, exception: Exception | None = None, hint: str | None = None
) -> NoReturn:
	"""
	Display an error message and exit.

	Args:
	        message: Error message to display
	        exit_code: Exit code to use
	        exception: Optional exception that caused the error
	        hint: Optional suggestion for the user

	"""
	show_error(message, exception, hint)
	raise typer.Exit(exit_code) from exception


def handle_keyboard_interrupt() -> NoReturn:
	"""Exit with the SIGINT status after telling the user why."""
	console.print("\n[yellow]Operation cancelled by user.[/yellow]")
	raise typer.Exit(SIGINT_EXIT_CODE)
