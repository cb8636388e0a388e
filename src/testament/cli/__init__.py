"""Command-line interface package for testament."""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from testament import __version__
from testament.utils.log_setup import log_environment_info, setup_logging

from .show_cmd import register_command as register_show_command

logger = logging.getLogger(__name__)

# SOURCE_DATE_EPOCH and friends may come from .env.local or .env
env_local = Path(".env.local")
if env_local.exists():
	load_dotenv(dotenv_path=env_local)
	logger.debug("Loaded environment variables from %s", env_local)
else:
	env_file = Path(".env")
	if env_file.exists():
		load_dotenv(dotenv_path=env_file)
		logger.debug("Loaded environment variables from %s", env_file)

app = typer.Typer(
	help=f"testament - describe the git working tree a build came from\n\nVersion: {__version__}",
	no_args_is_help=True,
	context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
	"""Callback for --version option."""
	if value:
		typer.echo(f"testament version: {__version__}")
		raise typer.Exit


@app.callback(invoke_without_command=True)
def global_options(
	ctx: typer.Context,
	is_verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")] = False,
	is_output_log: Annotated[
		bool,
		typer.Option(
			"--save-log",
			help="Enable logging to a file. Logs to logs/testament_{datetime}.log.",
		),
	] = False,
	_version: Annotated[
		bool | None,
		typer.Option("--version", help="Show version and exit.", callback=_version_callback, is_eager=True),
	] = None,
) -> None:
	"""Global CLI options and logging setup."""
	ctx.meta["is_verbose"] = is_verbose

	log_file_path: Path | None = None
	if is_output_log:
		current_time = datetime.datetime.now(tz=datetime.UTC).strftime("%Y-%m-%d_%H-%M-%S")
		log_file_path = Path("logs") / f"testament_{current_time}.log"

	setup_logging(is_verbose=is_verbose, log_file_path=log_file_path)
	log_environment_info()


register_show_command(app)


def main() -> None:
	"""Console script entry point."""
	app()
