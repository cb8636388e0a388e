"""
Logging setup for testament.

stdout is reserved for the rendered testament, so every log record and
summary panel is written to stderr through a shared rich console.

"""

from __future__ import annotations

import logging
from pathlib import Path

import pygit2
from rich.console import Console
from rich.logging import RichHandler
from rich.rule import Rule
from rich.text import Text

from testament import __version__

console = Console(stderr=True)

FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s"


def _file_handler(log_file_path: Path) -> logging.Handler:
	"""Create a debug-level handler appending to `log_file_path`."""
	log_file_path.parent.mkdir(parents=True, exist_ok=True)
	handler = logging.FileHandler(log_file_path, mode="a", encoding="utf-8")
	handler.setLevel(logging.DEBUG)
	handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
	return handler


def _report_setup_failure(log_file_path: Path | str, error: OSError) -> None:
	"""Print a file-logging failure straight to stderr, bypassing the root logger."""
	crit_logger = logging.getLogger("testament.cli.critical_setup")
	crit_logger.handlers.clear()
	stream_handler = logging.StreamHandler()
	stream_handler.setFormatter(logging.Formatter("%(message)s"))
	crit_logger.addHandler(stream_handler)
	crit_logger.propagate = False
	crit_logger.critical("[TESTAMENT CLI CRITICAL] Failed to set up file logging to %s: %s", log_file_path, error)


def setup_logging(
	is_verbose: bool = False,
	log_to_console: bool = True,
	log_file_path: Path | str | None = None,
) -> None:
	"""
	Set up logging configuration.

	Args:
	    is_verbose: Log debug records to the console instead of warnings only
	    log_to_console: Whether to log to stderr at all
	    log_file_path: Optional file that receives every debug record

	"""
	console_level = logging.DEBUG if is_verbose else logging.WARNING
	root_logger = logging.getLogger()

	# Repeated calls replace the handlers instead of stacking them
	for handler in root_logger.handlers[:]:
		root_logger.removeHandler(handler)
	root_logger.setLevel(console_level)

	if log_to_console:
		root_logger.addHandler(
			RichHandler(
				console=console,
				level=console_level,
				rich_tracebacks=True,
				show_time=is_verbose,
				show_path=is_verbose,
			)
		)

	if not log_file_path:
		return
	try:
		root_logger.addHandler(_file_handler(Path(log_file_path)))
	except OSError as e:
		_report_setup_failure(log_file_path, e)
		return
	root_logger.setLevel(logging.DEBUG)
	root_logger.debug("Logging to file: %s", log_file_path)


def log_environment_info() -> None:
	"""Log the tool and libgit2 versions in use."""
	logger = logging.getLogger(__name__)
	logger.debug("testament version: %s", __version__)
	logger.debug("pygit2 %s on libgit2 %s", pygit2.__version__, pygit2.LIBGIT2_VERSION)


def _display_summary(title: str, message: str, style: str) -> None:
	console.print()
	console.print(Rule(Text(title, style=f"bold {style}"), style=style))
	console.print(f"\n{message}\n")
	console.print(Rule(style=style))
	console.print()


def display_error_summary(error_message: str) -> None:
	"""Display an error between red dividers."""
	_display_summary("Error Summary", error_message, "red")


def display_warning_summary(warning_message: str) -> None:
	"""Display a warning between yellow dividers."""
	_display_summary("Warning Summary", warning_message, "yellow")
