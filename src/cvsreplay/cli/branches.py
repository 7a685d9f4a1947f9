"""cvs-replay branches / history: inspect the metadata database."""

from __future__ import annotations

import os

import typer

from cvsreplay.cli import _exitcodes as ec
from cvsreplay.cli._output import print_error, print_table
from cvsreplay.errors import MetadataError
from cvsreplay.storage import MetadataStore


def _open_store(database: str) -> MetadataStore:
    # Opening creates the file, which inspection commands must not do.
    if not os.path.exists(database):
        print_error(f"Database not found: {database}")
        raise typer.Exit(ec.DATABASE_ERROR)
    try:
        return MetadataStore.open(database)
    except MetadataError as e:
        print_error(f"Cannot open metadata database: {e}")
        raise typer.Exit(ec.DATABASE_ERROR)


def branches_cmd(
    database: str = typer.Option(..., "--database", "-d", help="metadata database"),
) -> None:
    """List the git branches that have been replayed."""
    from cvsreplay.cli import state

    store = _open_store(database)
    try:
        mappings = store.list_branches()
    except MetadataError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        store.close()

    if not mappings and not state.json_output:
        print("No branches replayed.")
        return
    print_table(
        ["git_branch", "cvs_branch", "commits"],
        [[m.git_branch, m.cvs_branch, m.commit_count] for m in mappings],
        json_mode=state.json_output,
    )


def history_cmd(
    database: str = typer.Option(..., "--database", "-d", help="metadata database"),
    branch: str = typer.Option(..., "--branch", "-b", help="git branch"),
) -> None:
    """Show the recorded linear history of a replayed branch, oldest first."""
    from cvsreplay.cli import state

    store = _open_store(database)
    try:
        cvs_branch = store.get_cvs_branch(branch)
        commits = store.list_commits(branch) if cvs_branch is not None else []
    except MetadataError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        store.close()

    if cvs_branch is None:
        print_error(f"Branch '{branch}' has not been replayed")
        raise typer.Exit(ec.GENERAL_ERROR)

    if not state.json_output:
        print(f"{branch} -> {cvs_branch}")
    print_table(
        ["index", "oid"],
        [[i, oid] for i, oid in enumerate(commits)],
        json_mode=state.json_output,
    )
