"""Commands that resolve and print the testament of a working tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from testament.config import AppConfigSchema, ConfigError, ConfigLoader
from testament.git.models import Testament
from testament.git.utils import RepositoryContext, RepositoryUnavailable, ResolutionError
from testament.render import describe, render, render_with_version
from testament.resolver import RepositoryResolver
from testament.utils.cli_utils import exit_with_error, handle_keyboard_interrupt, resolution_hint, show_warning

logger = logging.getLogger(__name__)

PathArg = Annotated[
	Path | None,
	typer.Argument(
		help="Path inside the working tree (defaults to the current directory)",
		show_default=False,
	),
]

UntrackedFlag = Annotated[
	bool | None,
	typer.Option(
		"--untracked/--no-untracked",
		help="Count untracked files as modifications (overrides config)",
		show_default=False,
	),
]

PackageVersionOpt = Annotated[
	str | None,
	typer.Option(
		"--package-version",
		"-p",
		help="Version the package declares; shown when the nearest tag does not match it",
	),
]

TrustedBranchOpt = Annotated[
	str | None,
	typer.Option(
		"--trusted-branch",
		help="Branch whose clean builds are rendered as the package version",
	),
]

ConfigOpt = Annotated[
	Path | None,
	typer.Option(
		"--config",
		"-c",
		help="Path to config file",
	),
]

JsonFlag = Annotated[bool, typer.Option("--json", help="Print the fields as JSON")]


def _find_work_tree(path: Path | None) -> Path | None:
	"""Return the working tree root for `path`, if it is inside a non-bare repository."""
	try:
		context = RepositoryContext.discover(path)
	except RepositoryUnavailable:
		return None
	return context.workdir


def _load_and_resolve(
	path: Path | None, config_file: Path | None, untracked: bool | None
) -> tuple[AppConfigSchema, Testament]:
	"""Load configuration for `path` and resolve its testament."""
	try:
		config = ConfigLoader(config_file, repo_root=_find_work_tree(path)).get
		testament = RepositoryResolver(config).resolve(path, include_untracked=untracked)
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
	except ConfigError as e:
		exit_with_error("Invalid configuration.", exception=e)
	except ResolutionError as e:
		exit_with_error("Unable to determine the repository state.", exception=e, hint=resolution_hint(e))
	return config, testament


def register_command(app: typer.Typer) -> None:
	"""Register the show and fields commands with the CLI app."""

	@app.command(name="show")
	def show_command(
		path: PathArg = None,
		untracked: UntrackedFlag = None,
		package_version: PackageVersionOpt = None,
		trusted_branch: TrustedBranchOpt = None,
		config_file: ConfigOpt = None,
	) -> None:
		"""Print the testament of the working tree as a single line."""
		config, testament = _load_and_resolve(path, config_file, untracked)

		version = package_version or config.package_version
		branch = trusted_branch or config.trusted_branch
		if version:
			typer.echo(render_with_version(testament, version, branch))
			return
		if branch:
			show_warning("A trusted branch has no effect without a package version.")
		typer.echo(render(testament))

	@app.command(name="fields")
	def fields_command(
		path: PathArg = None,
		as_json: JsonFlag = False,
		untracked: UntrackedFlag = None,
		package_version: PackageVersionOpt = None,
		trusted_branch: TrustedBranchOpt = None,
		config_file: ConfigOpt = None,
	) -> None:
		"""Print the individual testament fields."""
		config, testament = _load_and_resolve(path, config_file, untracked)
		fields = describe(
			testament, package_version or config.package_version, trusted_branch or config.trusted_branch
		)

		if as_json:
			typer.echo(fields.model_dump_json(indent=2))
			return

		table = Table(title="Testament", show_header=True, header_style="bold")
		table.add_column("Field")
		table.add_column("Value")
		for name, value in fields.model_dump().items():
			table.add_row(name, "-" if value is None else str(value))
		Console().print(table)
