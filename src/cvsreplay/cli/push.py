"""cvs-replay push: replay one git branch onto CVS."""

from __future__ import annotations

from typing import Optional

import typer

from cvsreplay.cli import _exitcodes as ec
from cvsreplay.cli._output import print_error, print_object
from cvsreplay.config import ConfigFile, build_config, load_config_file
from cvsreplay.errors import ReplayError
from cvsreplay.replay import replay_branch


def push_cmd(
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
    """Replay the linear history of a git branch onto a CVS module."""
    run_push(
        branch=branch,
        cvs=cvs,
        cvsroot=cvsroot,
        database=database,
        git=git,
        module=module,
        remote=remote,
        target=target,
    )


def run_push(
    *,
    branch: str | None,
    cvs: str | None,
    cvsroot: str | None,
    database: str | None,
    git: str | None,
    module: str | None,
    remote: bool,
    target: str | None,
) -> None:
    """Build the replay config from options and the config file, then replay.

    Shared by the `push` command and the top-level invocation without a command.
    """
    from cvsreplay.cli import state

    json_mode = state.json_output

    try:
        config_file: ConfigFile | None = None
        if state.config:
            config_file = load_config_file(state.config)
        config = build_config(
            {
                "branch": branch,
                "cvs": cvs,
                "cvsroot": cvsroot,
                "database": database,
                "git": git,
                "module": module,
                "remote": True if remote else None,
                "target": target,
            },
            config_file,
        )
    except ReplayError as e:
        print_error(str(e))
        raise typer.Exit(ec.for_exception(e))

    try:
        result = replay_branch(config)
    except (ReplayError, OSError) as e:
        print_error(str(e))
        if e.__cause__ is not None:
            print_error(f"caused by: {e.__cause__}")
        raise typer.Exit(ec.for_exception(e))

    print_object(
        {
            "git_branch": result.git_branch,
            "cvs_branch": result.cvs_branch,
            "commits": result.commits,
        },
        json_mode=json_mode,
    )
