from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import typer

from github_filestore import load_config
from github_filestore.client import EnvClientProvider
from github_filestore.config import AppConfig
from github_filestore.errors import FileStoreError
from github_filestore.schemas import CommitResult, ContentEntry, MemberOutcome
from github_filestore.store import GitHubFileStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

T = TypeVar("T")

app = typer.Typer(help="GitHub file store CLI")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Config file path (JSON or YAML).",
    exists=True,
    dir_okay=False,
    readable=True,
)
_BRANCH_OPTION = typer.Option(None, "--branch", "-b", help="Target branch.")
_MESSAGE_OPTION = typer.Option(None, "--message", "-m", help="Commit message.")
_AUTHOR_NAME_OPTION = typer.Option(None, "--author-name", help="Commit author name.")
_AUTHOR_EMAIL_OPTION = typer.Option(None, "--author-email", help="Commit author email.")


@app.command()
def get(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument(..., help="File path inside the repository."),
    branch: str | None = _BRANCH_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Print file metadata as JSON."""
    store = _build_store(config_path)
    entry = _run(lambda: store.get_metadata(owner, repo, path, ref=branch))
    typer.echo(entry.model_dump_json(indent=2, exclude_none=True))


@app.command()
def read(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument(..., help="File path inside the repository."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Save the file here instead of printing it.",
        dir_okay=False,
    ),
    branch: str | None = _BRANCH_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Print a file's text, or save its bytes with --output."""
    store = _build_store(config_path)
    if output is not None:
        _run(lambda: store.read_to_file(owner, repo, path, output, ref=branch))
        typer.echo(f"saved {path} to {output}")
        return
    typer.echo(_run(lambda: store.read(owner, repo, path, ref=branch)), nl=False)


@app.command()
def write(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument(..., help="File path inside the repository."),
    content: str | None = typer.Option(None, "--content", "-c", help="Text content to write."),
    from_file: Path | None = typer.Option(
        None,
        "--from-file",
        "-f",
        help="Local file to upload.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    branch: str | None = _BRANCH_OPTION,
    message: str | None = _MESSAGE_OPTION,
    author_name: str | None = _AUTHOR_NAME_OPTION,
    author_email: str | None = _AUTHOR_EMAIL_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Create or update a file."""
    if (content is None) == (from_file is None):
        typer.echo("exactly one of --content or --from-file is required", err=True)
        raise typer.Exit(code=1)

    store = _build_store(config_path)
    options = dict(
        message=message,
        branch=branch,
        author_name=author_name,
        author_email=author_email,
    )
    if from_file is not None:
        result = _run(lambda: store.write_from_file(owner, repo, path, from_file, **options))
    else:
        result = _run(lambda: store.write(owner, repo, path, content or "", **options))
    typer.echo(_describe_commit("wrote", path, result))


@app.command()
def delete(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument(..., help="File path inside the repository."),
    branch: str | None = _BRANCH_OPTION,
    message: str | None = _MESSAGE_OPTION,
    author_name: str | None = _AUTHOR_NAME_OPTION,
    author_email: str | None = _AUTHOR_EMAIL_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Delete a file."""
    store = _build_store(config_path)
    result = _run(
        lambda: store.delete(
            owner,
            repo,
            path,
            message=message,
            branch=branch,
            author_name=author_name,
            author_email=author_email,
        )
    )
    typer.echo(_describe_commit("deleted", path, result))


@app.command("ls")
def list_directory(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument("", help="Directory path; repository root when omitted."),
    branch: str | None = _BRANCH_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """List a directory."""
    store = _build_store(config_path)
    entries = _run(lambda: store.list(owner, repo, path, ref=branch))
    typer.echo(_render_entries(entries))


@app.command()
def exists(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument(..., help="File path inside the repository."),
    branch: str | None = _BRANCH_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Exit 0 when the file exists, 1 otherwise."""
    store = _build_store(config_path)
    found = store.exists(owner, repo, path, ref=branch)
    typer.echo("true" if found else "false")
    if not found:
        raise typer.Exit(code=1)


@app.command()
def copy(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    source_path: str = typer.Argument(..., help="Existing file path."),
    dest_path: str = typer.Argument(..., help="Destination file path."),
    branch: str | None = _BRANCH_OPTION,
    message: str | None = _MESSAGE_OPTION,
    author_name: str | None = _AUTHOR_NAME_OPTION,
    author_email: str | None = _AUTHOR_EMAIL_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Copy a file inside a repository."""
    store = _build_store(config_path)
    result = _run(
        lambda: store.copy(
            owner,
            repo,
            source_path,
            dest_path,
            message=message,
            branch=branch,
            author_name=author_name,
            author_email=author_email,
        )
    )
    typer.echo(_describe_commit("copied", f"{source_path} -> {dest_path}", result))


@app.command()
def move(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    source_path: str = typer.Argument(..., help="Existing file path."),
    dest_path: str = typer.Argument(..., help="Destination file path."),
    branch: str | None = _BRANCH_OPTION,
    message: str | None = _MESSAGE_OPTION,
    author_name: str | None = _AUTHOR_NAME_OPTION,
    author_email: str | None = _AUTHOR_EMAIL_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Move a file inside a repository (copy, then delete the source)."""
    store = _build_store(config_path)
    result = _run(
        lambda: store.move(
            owner,
            repo,
            source_path,
            dest_path,
            message=message,
            branch=branch,
            author_name=author_name,
            author_email=author_email,
        )
    )
    typer.echo(_describe_commit("moved", f"{source_path} -> {dest_path}", result))


@app.command("upload-dir")
def upload_dir(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    dest_root: str = typer.Argument(..., help="Destination directory in the repository."),
    local_dir: Path = typer.Argument(
        ...,
        help="Local directory to upload.",
        exists=True,
        file_okay=False,
        readable=True,
    ),
    branch: str | None = _BRANCH_OPTION,
    message: str | None = _MESSAGE_OPTION,
    author_name: str | None = _AUTHOR_NAME_OPTION,
    author_email: str | None = _AUTHOR_EMAIL_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Upload every file under a local directory."""
    store = _build_store(config_path)
    outcomes: list[MemberOutcome] = []
    _run(
        lambda: store.write_directory(
            owner,
            repo,
            dest_root,
            local_dir,
            message=message,
            branch=branch,
            author_name=author_name,
            author_email=author_email,
            outcomes=outcomes,
        )
    )
    _echo_outcomes("uploaded", outcomes)


@app.command("delete-dir")
def delete_dir(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument("", help="Directory to delete; repository root when omitted."),
    branch: str | None = _BRANCH_OPTION,
    message: str | None = _MESSAGE_OPTION,
    author_name: str | None = _AUTHOR_NAME_OPTION,
    author_email: str | None = _AUTHOR_EMAIL_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Delete every file under a directory, one commit per file."""
    store = _build_store(config_path)
    outcomes: list[MemberOutcome] = []
    options = dict(
        message=message,
        branch=branch,
        author_name=author_name,
        author_email=author_email,
        outcomes=outcomes,
    )
    if path.strip("/"):
        _run(lambda: store.delete_directory(owner, repo, path, **options))
    else:
        _run(lambda: store.delete_repository_contents(owner, repo, **options))
    _echo_outcomes("deleted", outcomes)


@app.command("raw-url")
def raw_url(
    owner: str = typer.Argument(..., help="Repository owner."),
    repo: str = typer.Argument(..., help="Repository name."),
    path: str = typer.Argument(..., help="File path inside the repository."),
    branch: str | None = _BRANCH_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
) -> None:
    """Print the raw.githubusercontent.com URL for a file (no network call)."""
    store = _build_store(config_path)
    typer.echo(store.get_raw_download_url(owner, repo, path, branch))


def _build_store(config_path: Path | None) -> GitHubFileStore:
    try:
        config = load_config(config_path) if config_path is not None else AppConfig()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    return GitHubFileStore(
        EnvClientProvider(config.github),
        defaults=config.commit,
        raw_base=config.github.raw_base,
    )


def _run(operation: Callable[[], T]) -> T:
    try:
        return operation()
    except FileStoreError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _describe_commit(action: str, target: str, result: CommitResult | None) -> str:
    if result is None:
        return f"{action} {target} (commit metadata unavailable)"
    return f"{action} {target} commit={result.commit_sha}"


def _render_entries(entries: list[ContentEntry]) -> str:
    if not entries:
        return "empty directory"

    rows = [
        (entry.type.value, "-" if entry.size is None else str(entry.size), entry.path)
        for entry in entries
    ]
    widths = [max(len(row[column]) for row in rows) for column in range(2)]
    return "\n".join(
        f"{kind.ljust(widths[0])}  {size.rjust(widths[1])}  {path}" for kind, size, path in rows
    )


def _echo_outcomes(action: str, outcomes: list[MemberOutcome]) -> None:
    failed = [outcome for outcome in outcomes if not outcome.succeeded]
    for outcome in failed:
        typer.echo(f"failed {outcome.path}: {outcome.reason}", err=True)
    typer.echo(
        json.dumps(
            {
                action: len(outcomes) - len(failed),
                "failed": len(failed),
            }
        )
    )
    if failed:
        raise typer.Exit(code=1)


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
