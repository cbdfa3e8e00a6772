"""Main CLI entry point for MerkleDB."""

import logging
import shutil
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from merkledb.config import ConfigError, RepoConfig, find_repo_dir, load_config, save_config
from merkledb.constants import (
    ENV_REPO,
    EXIT_DATA_ERROR,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    MERKLEDB_DIR,
)
from merkledb.core import BlobRecord, Commit, Tree, Workspace
from merkledb.errors import DecodeError, MerkleDBError, NotFoundError
from merkledb.storage import BackendRegistry, ObjectStore, StorageBackend, compute_hash

console = Console()
app = typer.Typer(
    name="merkledb",
    help="Content-addressable object store with Git-like history",
    add_completion=False,
)


class _State:
    repo_root: Path = Path(".")


state = _State()


@app.callback()
def main_callback(
    repo: Path = typer.Option(
        Path("."),
        "--repo",
        "-C",
        envvar=ENV_REPO,
        help="Repository root (directory containing .merkledb/)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log storage operations",
    ),
) -> None:
    """MerkleDB plumbing commands."""
    state.repo_root = repo.resolve()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _error(message: str, code: int = EXIT_USER_ERROR) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {message}", style="red", soft_wrap=True)
    return typer.Exit(code)


def _open_backend() -> StorageBackend:
    """Open the backend configured for the current repository."""
    try:
        repo_dir = find_repo_dir(state.repo_root)
        config = load_config(repo_dir)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        console.print(
            "\nRun [bold]merkledb init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    registry = BackendRegistry()
    registry.discover_backends()
    try:
        return registry.open(config.backend, repo_dir)
    except KeyError as e:
        raise _error(str(e.args[0]))


def _exit_code_for(error: MerkleDBError) -> int:
    if isinstance(error, (NotFoundError, DecodeError)):
        return EXIT_DATA_ERROR
    return EXIT_SYSTEM_ERROR


@app.command()
def version() -> None:
    """Show MerkleDB version."""
    from merkledb import __version__
    typer.echo(f"MerkleDB version {__version__}")


@app.command()
def init(
    backend: str = typer.Option(
        "file",
        "--backend",
        "-b",
        help="Storage backend for objects (file, sqlite, or an installed plugin)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing .merkledb/ directory (dangerous!)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a MerkleDB repository."""
    workspace_root = state.repo_root
    repo_dir = workspace_root / MERKLEDB_DIR

    registry = BackendRegistry()
    registry.discover_backends()
    if backend not in registry.names() or backend == "memory":
        raise _error(f"Unsupported backend '{backend}'")

    if repo_dir.exists():
        if not force:
            console.print(
                f"[bold red]Error:[/bold red] MerkleDB repository already exists in {workspace_root}",
                style="red",
            )
            console.print(
                "\nUse [bold]--force[/bold] to reinitialize (will delete existing data!)",
                style="yellow",
            )
            raise typer.Exit(EXIT_USER_ERROR)

        if not quiet:
            console.print("[yellow]Removing existing .merkledb/ directory...[/yellow]")
        shutil.rmtree(repo_dir)

    try:
        repo_dir.mkdir(parents=True)
        save_config(repo_dir, RepoConfig(backend=backend))
        with registry.open(backend, repo_dir):
            pass
    except Exception as e:
        if repo_dir.exists():
            shutil.rmtree(repo_dir)
        raise _error(f"Failed to initialize repository: {e}", EXIT_SYSTEM_ERROR)

    if not quiet:
        console.print(
            Panel(
                f"[bold green]✓[/bold green] Initialized MerkleDB repository\n\n"
                f"[dim]Repository root:[/dim] {workspace_root}\n"
                f"[dim]Storage backend:[/dim] {backend}",
                border_style="green",
                title="MerkleDB Initialized",
            )
        )


@app.command("hash-object")
def hash_object(
    path: Path = typer.Argument(..., help="File to hash"),
    write: bool = typer.Option(
        False,
        "--write",
        "-w",
        help="Also store the file in the repository",
    ),
) -> None:
    """Print the object hash of a file, optionally storing it."""
    if not path.is_file():
        raise _error(f"File not found: {path}")
    record = BlobRecord(path.read_bytes())

    if not write:
        typer.echo(compute_hash(record.serialize()))
        return

    with _open_backend() as backend:
        try:
            typer.echo(ObjectStore(backend).write_object(record))
        except MerkleDBError as e:
            raise _error(str(e), _exit_code_for(e))


@app.command("cat-object")
def cat_object(
    object_hash: str = typer.Argument(..., help="Object hash (64 hex characters)"),
) -> None:
    """Print the raw stored bytes of an object."""
    with _open_backend() as backend:
        try:
            data = ObjectStore(backend).read_raw_object(object_hash)
        except MerkleDBError as e:
            raise _error(str(e), _exit_code_for(e))
    typer.echo(data, nl=False)


@app.command()
def snapshot(
    directory: Path = typer.Argument(..., help="Directory whose files are committed"),
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (required)",
    ),
    parents: Optional[List[str]] = typer.Option(
        None,
        "--parent",
        "-p",
        help="Parent commit hash (repeat for merges)",
    ),
) -> None:
    """Commit every file under DIRECTORY as a new snapshot."""
    if not message:
        console.print("[bold red]Error:[/bold red] Commit message is required", style="red")
        console.print(
            "  Use [bold]-m \"your message\"[/bold] to provide a commit message",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    if not directory.is_dir():
        raise _error(f"Not a directory: {directory}")
    directory = directory.resolve()

    files = [
        item
        for item in sorted(directory.rglob("*"))
        if item.is_file() and MERKLEDB_DIR not in item.relative_to(directory).parts
    ]

    with _open_backend() as backend:
        store = ObjectStore(backend)
        try:
            for parent in parents or []:
                if not store.object_exists(parent):
                    raise _error(f"Parent commit not found: {parent}", EXIT_DATA_ERROR)

            workspace = Workspace(store)
            for item in files:
                workspace.add(item.relative_to(directory).as_posix(), BlobRecord(item.read_bytes()))

            commit_hash = workspace.commit(message, parents or [])
            tree_hash = workspace.last_tree_hash
        except MerkleDBError as e:
            raise _error(str(e), _exit_code_for(e))

    console.print(f"[bold green]>[/bold green] {len(files)} file(s) committed")
    console.print(f"  [dim]tree:[/dim]   {tree_hash}", soft_wrap=True)
    console.print(f"  [dim]commit:[/dim] [bold yellow]{commit_hash}[/bold yellow]", soft_wrap=True)


@app.command("show-commit")
def show_commit(
    commit_hash: str = typer.Argument(..., help="Commit hash"),
) -> None:
    """Show a commit and the entries of its tree."""
    with _open_backend() as backend:
        store = ObjectStore(backend)
        try:
            commit = Commit.from_bytes(store.read_raw_object(commit_hash))
            tree = Tree.from_bytes(store.read_raw_object(commit.tree_hash))
        except MerkleDBError as e:
            raise _error(str(e), _exit_code_for(e))

    console.print(f"[bold yellow]commit {commit_hash}[/bold yellow]", soft_wrap=True)
    console.print(f"[dim]Tree:[/dim]    {commit.tree_hash}", soft_wrap=True)
    for parent in commit.parent_hashes:
        console.print(f"[dim]Parent:[/dim]  {parent}", soft_wrap=True)
    console.print(f"[dim]Date:[/dim]    {commit.timestamp.isoformat()}")
    console.print(f"\n    {commit.message}\n")

    console.print(f"[bold]{len(tree)} entr{'y' if len(tree) == 1 else 'ies'}:[/bold]")
    for name in tree:
        console.print(f"  [dim]{tree[name]}[/dim]  {name}", soft_wrap=True)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
