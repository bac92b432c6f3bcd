# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415
"""gitdesk working-copy commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.markup import escape
from rich.table import Table

from gitdesk.exceptions import GitDeskError
from gitdesk.models import ChangeRecord
from gitdesk.utils import short_id
from gitdesk.workspace import Workspace

from ._context import CLIContext
from ._shared import exit_code_for, exit_with_error, get_console

_STATUS_STYLES = {
    "added": "green",
    "modified": "yellow",
    "deleted": "red",
    "renamed": "blue",
    "conflicted": "bold red",
    "ignored": "dim",
    "untracked": "cyan",
}


@contextmanager
def _reporting_errors() -> Iterator[None]:
    """Turn gitdesk errors into an error message and exit code."""
    try:
        yield
    except GitDeskError as e:
        exit_with_error(str(e), exit_code_for(e))


def _workspace(*, open_repo: bool = True) -> Workspace:
    ctx = CLIContext.get_current()
    workspace = Workspace(config=ctx.config, logger=ctx.logger)
    if open_repo:
        workspace.manager.open(ctx.repo)
    return workspace


def _print_changes(title: str, style: str, records: tuple[ChangeRecord, ...]) -> None:
    console = get_console()
    console.print(f"[bold {style}]{title}:[/bold {style}]")
    for record in records:
        color = _STATUS_STYLES[record.status.value]
        label = f"{record.status.value:<10}"
        console.print(f"  [{color}]{label}[/{color}] {escape(record.file_path)}")


def register_commands(app: App) -> None:
    """Register working-copy commands on ``app``."""

    @app.command(name="init")
    def _init(
        path: Annotated[
            Path | None,
            Parameter(help="Directory to create or open (defaults to --repo)"),
        ] = None,
    ) -> None:
        """Create a repository, or open the one that already exists"""
        console = get_console()
        ctx = CLIContext.get_current()
        with _reporting_errors():
            workspace = _workspace(open_repo=False)
            created = workspace.create_or_open(path or ctx.repo)

        root = escape(str(workspace.manager.root))
        if created:
            console.print(f"[green]Created repository at {root}[/green]")
        else:
            console.print(f"[dim]Opened existing repository at {root}[/dim]")

    @app.command(name="open")
    def _open() -> None:
        """Open the repository and show the activity log"""
        console = get_console()
        ctx = CLIContext.get_current()
        with _reporting_errors():
            workspace = _workspace(open_repo=False)
            workspace.open(ctx.repo)

        for line in workspace.log.last_lines(workspace.log.line_count).splitlines():
            console.print(escape(line))

    @app.command(name="log")
    def _log(
        max_count: Annotated[
            int | None,
            Parameter(name=["--max-count", "-n"], help="Maximum number of commits"),
        ] = None,
    ) -> None:
        """Show commit history, newest first"""
        console = get_console()
        with _reporting_errors():
            commits = _workspace().manager.get_commit_log(max_count)

        if not commits:
            console.print("[dim]No commits yet[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Commit", style="yellow", no_wrap=True)
        table.add_column("Date", no_wrap=True)
        table.add_column("Author")
        table.add_column("Message")
        for commit in commits:
            table.add_row(
                short_id(commit.id),
                commit.authored_at.strftime("%Y-%m-%d %H:%M"),
                escape(commit.author_name),
                escape(commit.short_message),
            )
        console.print(table)

    @app.command(name="branches")
    def _branches() -> None:
        """List local branches"""
        console = get_console()
        with _reporting_errors():
            branches = _workspace().branches.list_branches()

        if not branches:
            console.print("[dim]No branches yet[/dim]")
            return
        for branch in branches:
            marker = "[green]*[/green]" if branch.is_current else " "
            console.print(f"{marker} {escape(branch.name)} [dim]{branch.tip_id}[/dim]")

    @app.command(name="status")
    def _status() -> None:
        """Show staged and unstaged changes"""
        console = get_console()
        with _reporting_errors():
            changes = _workspace().get_changes()

        if changes.is_clean:
            console.print("[dim]Nothing to commit, working tree clean[/dim]")
            return
        if changes.staged:
            _print_changes("Staged changes", "green", changes.staged)
        if changes.unstaged:
            _print_changes("Unstaged changes", "yellow", changes.unstaged)

    @app.command(name="stage")
    def _stage(
        paths: Annotated[tuple[str, ...], Parameter(help="Repository-relative paths")],
    ) -> None:
        """Stage paths for the next commit"""
        console = get_console()
        with _reporting_errors():
            workspace = _workspace()
            for path in paths:
                workspace.stage(path)
                console.print(f"[green]Staged[/green] {escape(path)}")

    @app.command(name="unstage")
    def _unstage(
        paths: Annotated[tuple[str, ...], Parameter(help="Repository-relative paths")],
    ) -> None:
        """Remove paths from the next commit"""
        console = get_console()
        with _reporting_errors():
            workspace = _workspace()
            for path in paths:
                workspace.unstage(path)
                console.print(f"[yellow]Unstaged[/yellow] {escape(path)}")

    @app.command(name="commit")
    def _commit(
        message: Annotated[str, Parameter(name=["--message", "-m"], help="Commit message")],
    ) -> None:
        """Commit staged changes"""
        console = get_console()
        with _reporting_errors():
            record = _workspace().commit(message)

        console.print(
            f"[green]Committed[/green] [yellow]{short_id(record.id)}[/yellow] "
            f"{escape(record.short_message)} [dim]({escape(record.author_name)})[/dim]"
        )

    @app.command(name="checkout")
    def _checkout(
        name: Annotated[str, Parameter(help="Branch to switch to")],
    ) -> None:
        """Switch to an existing branch"""
        console = get_console()
        with _reporting_errors():
            _workspace().checkout(name)

        console.print(f"Switched to branch [bold]{escape(name)}[/bold]")

    @app.command(name="branch")
    def _branch(
        name: Annotated[str, Parameter(help="Name of the new branch")],
    ) -> None:
        """Create a branch at the current commit and switch to it"""
        console = get_console()
        with _reporting_errors():
            _workspace().create_branch(name)

        console.print(f"Switched to a new branch [bold]{escape(name)}[/bold]")

    @app.command(name="merge")
    def _merge(
        name: Annotated[str, Parameter(help="Branch to merge into the current branch")],
    ) -> None:
        """Merge a branch into the current branch"""
        console = get_console()
        with _reporting_errors():
            outcome = _workspace().merge(name)

        if outcome.up_to_date:
            console.print("[dim]Already up to date[/dim]")
        elif outcome.has_conflicts:
            console.print("[bold red]Merge stopped with conflicts:[/bold red]")
            for path in outcome.conflicts:
                console.print(f"  [red]{escape(path)}[/red]")
            console.print("[dim]Resolve, stage and commit to conclude the merge[/dim]")
        elif outcome.fast_forward and outcome.commit_id is not None:
            console.print(f"Fast-forward to [yellow]{short_id(outcome.commit_id)}[/yellow]")
        elif outcome.commit_id is not None:
            console.print(
                f"Merged [bold]{escape(name)}[/bold] as "
                f"[yellow]{short_id(outcome.commit_id)}[/yellow]"
            )
