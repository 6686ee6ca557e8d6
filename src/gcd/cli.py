"""
Main CLI for gcd using Click.

`gcd <pattern>` resolves a pattern to one indexed repository and prints its
path on stdout (the shell function cds into it). Anything that is not a
known subcommand is treated as a pattern.
"""

import json
import sys
from pathlib import Path

import click

from . import __version__
from . import shell as shell_integration
from .config import AppConfig, load_config
from .errors import (
    EXIT_INTERRUPTED,
    EXIT_IO_ERROR,
    AmbiguousMatch,
    GcdError,
)
from .index import IndexManager, IndexStore
from .logging import configure_logging, get_logger
from .matching import POLICIES, FuzzyMatcher, Resolver

logger = get_logger(__name__)

DEFAULT_COMMAND = "go"


class DefaultCommandGroup(click.Group):
    """Group that routes unknown first arguments to DEFAULT_COMMAND.

    `gcd awesome` is equivalent to `gcd go awesome`.
    """

    def resolve_command(self, ctx: click.Context, args: list[str]):  # type: ignore[override]
        if args and not args[0].startswith("-") and self.get_command(ctx, args[0]) is None:
            return DEFAULT_COMMAND, self.get_command(ctx, DEFAULT_COMMAND), args
        return super().resolve_command(ctx, args)

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            click.echo("gcd: interrupted", err=True)
            ctx.exit(EXIT_INTERRUPTED)


class AppContext:
    """Per-invocation state shared between the group and its commands."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.store = IndexStore(config.index.file)

    def manager(self) -> IndexManager:
        return IndexManager(
            self.store,
            markers=self.config.index.markers,
            exclude_dirs=self.config.index.exclude_dirs,
        )


def _fail(error: GcdError) -> None:
    """Print a GcdError on stderr and exit with its code."""
    click.echo(f"gcd: {error}", err=True)
    sys.exit(error.exit_code)


def _echo_repos(app: AppContext) -> None:
    index = app.store.load()
    if not len(index):
        click.echo("No repositories indexed. Run 'gcd index <dir>' first.", err=True)
        return
    click.echo("Available repositories:")
    for record in index:
        click.echo(f"  {record.name}: {record.path}")


@click.group(cls=DefaultCommandGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="gcd")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to the YAML configuration file",
)
@click.option(
    "--index-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Index file to use instead of the configured one",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Verbosity level (-v, -vv for more detail)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="File to save structured logs (JSON)",
)
@click.option(
    "--quiet",
    is_flag=True,
    help="Quiet mode (no log output on stderr)",
)
@click.pass_context
def main(
    ctx: click.Context,
    config: Path | None,
    index_file: Path | None,
    verbose: int,
    log_file: Path | None,
    quiet: bool,
) -> None:
    """gcd - Jump to indexed git repositories by fuzzy name.

    \b
    gcd <pattern>      print the best matching repository path
    gcd index [DIR]    scan DIR for repositories and index them
    gcd                list indexed repositories
    """
    cli_args = {"index_file": index_file, "verbose": verbose, "log_file": log_file}
    try:
        app_config = load_config(config_path=config, cli_args=cli_args)
    except GcdError as e:
        _fail(e)

    try:
        configure_logging(app_config.logging, quiet=quiet)
    except OSError as e:
        click.echo(f"gcd: cannot open log file: {e}", err=True)
        sys.exit(EXIT_IO_ERROR)

    app = AppContext(app_config)
    ctx.obj = app
    logger.debug("config.loaded", index_file=str(app_config.index.file))

    if ctx.invoked_subcommand is None:
        try:
            _echo_repos(app)
        except GcdError as e:
            _fail(e)


@main.command("go")
@click.argument("pattern")
@click.option(
    "--tie-break",
    type=click.Choice(POLICIES),
    default=None,
    help="How to settle ties: auto-pick a winner or report the candidates",
)
@click.pass_obj
def go(app: AppContext, pattern: str, tie_break: str | None) -> None:
    """Print the path of the repository best matching PATTERN."""
    policy = tie_break or app.config.match.tie_break
    try:
        index = app.store.load()
        matches = FuzzyMatcher().match(index, pattern)
        winner = Resolver(policy).resolve(matches, query=pattern)
    except AmbiguousMatch as e:
        click.echo(f"gcd: {e}", err=True)
        for candidate in e.candidates:
            click.echo(f"  {candidate.record.path}", err=True)
        sys.exit(e.exit_code)
    except GcdError as e:
        _fail(e)

    # Exactly one path on stdout: the shell function cds into it
    click.echo(winner.record.path)


@main.command()
@click.argument("root", default=".", type=click.Path(path_type=Path))
@click.option(
    "--rebuild",
    is_flag=True,
    help="Replace everything indexed under ROOT instead of merging",
)
@click.pass_obj
def index(app: AppContext, root: Path, rebuild: bool) -> None:
    """Scan ROOT (default: current directory) for repositories."""
    manager = app.manager()
    try:
        report = manager.build(root) if rebuild else manager.update(root)
    except GcdError as e:
        _fail(e)

    # Each unreadable directory is already reported by the scan.unreadable warning
    click.echo(
        f"Indexed {report.found} repositories under {report.root} "
        f"({len(report.added)} new, {len(report.removed)} removed, "
        f"{len(report.warnings)} unreadable)"
    )


@main.command("list")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_cmd(app: AppContext, json_output: bool) -> None:
    """List indexed repositories."""
    try:
        if json_output:
            records = [r.to_dict() for r in app.store.load()]
            click.echo(json.dumps(records, indent=2, ensure_ascii=False))
        else:
            _echo_repos(app)
    except GcdError as e:
        _fail(e)


@main.command()
@click.pass_obj
def prune(app: AppContext) -> None:
    """Remove entries that are no longer repositories."""
    try:
        removed = app.manager().prune()
    except GcdError as e:
        _fail(e)

    for path in removed:
        click.echo(f"  removed {path}")
    click.echo(f"Pruned {len(removed)} repositories")


@main.command()
@click.argument("path")
@click.pass_obj
def forget(app: AppContext, path: str) -> None:
    """Drop PATH from the index."""
    try:
        removed = app.manager().forget(path)
    except GcdError as e:
        _fail(e)

    if removed:
        click.echo(f"Forgot {path}")
    else:
        click.echo(f"'{path}' is not indexed", err=True)
        sys.exit(1)


@main.command()
@click.argument("shell", default="bash")
@click.option(
    "--print",
    "print_only",
    is_flag=True,
    help="Print the snippet instead of editing the rc file",
)
def install(shell: str, print_only: bool) -> None:
    """Install shell integration (bash, zsh, fish, ps)."""
    try:
        if print_only:
            click.echo(shell_integration.snippet_for(shell))
            return
        target, changed = shell_integration.install(shell)
    except GcdError as e:
        _fail(e)
    except OSError as e:
        click.echo(f"gcd: cannot update rc file: {e}", err=True)
        sys.exit(EXIT_IO_ERROR)

    if changed:
        click.echo(f"Shell integration installed for {shell} in {target}")
    else:
        click.echo(f"Shell integration already present in {target}")


if __name__ == "__main__":
    main()
