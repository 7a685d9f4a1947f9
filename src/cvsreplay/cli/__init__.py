"""cvs-replay CLI: replay git branches onto CVS and inspect what was replayed."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from cvsreplay.cli import _exitcodes as ec
from cvsreplay.cli import branches, push
from cvsreplay.cli._output import print_error
from cvsreplay.log import configure_logging, level_from_verbosity, parse_level

app = typer.Typer(
    name="cvs-replay",
    help="cvs-replay: replay the history of a git branch onto a CVS module.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    config: str | None = None
    json_output: bool = False
    log_level: int = logging.WARNING


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("cvs-replay")
        except Exception:
            from cvsreplay import __version__ as v
        print(f"cvs-replay {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="CVS_REPLAY_CONFIG",
        help="YAML config file supplying defaults for push options",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        envvar="CVS_REPLAY_LOG",
        help="Log level: trace, debug, info, warning, error",
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="More logging (-v info, -vv debug, -vvv trace)"
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="the branch to push"),
    cvs: Optional[str] = typer.Option(None, "--cvs", help="cvs binary to use [default: cvs]"),
    cvsroot: Optional[str] = typer.Option(None, "--cvsroot", envvar="CVSROOT", help="CVSROOT"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="metadata database"),
    git: Optional[str] = typer.Option(None, "--git", "-g", help="git repository"),
    module: Optional[str] = typer.Option(
        None, "--module", "-m", help="cvs module to check out, if any [default: .]"
    ),
    remote: bool = typer.Option(False, "--remote", "-r", help="use a remote branch"),
    target: Optional[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="the target directory within the cvs checkout; can be . to write at the "
        "top level [default: src]",
    ),
) -> None:
    """Global options for all cvs-replay commands.

    Without a command, the replay options are taken here and a push is run, so
    `cvs-replay --branch main ...` and `cvs-replay push --branch main ...` do the same.
    """
    if log_level is not None:
        try:
            level = parse_level(log_level)
        except ValueError as e:
            print_error(str(e))
            raise typer.Exit(ec.USAGE_ERROR)
    else:
        level = level_from_verbosity(verbose)

    configure_logging(level)
    state.config = config
    state.json_output = json_output
    state.log_level = level

    if ctx.invoked_subcommand is None:
        push.run_push(
            branch=branch,
            cvs=cvs,
            cvsroot=cvsroot,
            database=database,
            git=git,
            module=module,
            remote=remote,
            target=target,
        )
        return

    # CVSROOT is usually inherited from the environment, so it is not checked.
    given = [branch, cvs, database, git, module, target]
    if remote or any(v is not None for v in given):
        print_error(
            f"Replay options cannot be combined with the '{ctx.invoked_subcommand}' command"
        )
        raise typer.Exit(ec.USAGE_ERROR)


app.command(name="push")(push.push_cmd)
app.command(name="branches")(branches.branches_cmd)
app.command(name="history")(branches.history_cmd)


def main() -> None:
    """Entry point for the cvs-replay CLI."""
    app()
