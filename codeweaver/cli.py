# codeweaver/cli.py
import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from .services.logging import setup_logging
from .config.loader import get_config, save_config
from .core.errors import GitLabError
from .core.models import ProjectEntry
from .core.paths import language_for_path
from .core.project_store import ProjectStore
from .core.response_extractor import extract_json, load_operation_batch
from .core.structure_parser import export_structure
from .services.gitlab import GitLabClient, push_active_file
from . import __version__

app = typer.Typer(help="CodeWeaver CLI - drive the virtual project headlessly.")


def version_callback(value: bool):
    if value:
        print(f"CodeWeaver CLI Version: {__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."),
):
    """ Main callback to set up logging """
    setup_logging(level=get_config().log_level, verbose=verbose, log_to_file=False)
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot read {path}: {e}")
        raise typer.Exit(code=1)


def _new_store(defaults: bool) -> ProjectStore:
    return ProjectStore.from_config(get_config()) if defaults else ProjectStore()


def _print_project(store: ProjectStore, as_json: bool) -> None:
    if as_json:
        print(json.dumps({
            "activeFile": store.active_path,
            "language": store.language,
            "entries": [e.to_dict() for e in store.entries],
        }, indent=2))
    else:
        print(export_structure(store.entries))
        print(f"\nActive file: {store.active_path or 'none'} (Lang: {store.language})")


@app.command()
def structure(
    source: Path = typer.Argument(..., help="Structure text file (2-space indentation, folders end with '/').", exists=True, dir_okay=False),
    defaults: bool = typer.Option(False, "--defaults", help="Merge into the starter project instead of an empty one."),
    as_json: bool = typer.Option(False, "--json", help="Print entries as JSON."),
):
    """Imports a structure text file and prints the resulting project."""
    store = _new_store(defaults)
    for message in store.import_structure(_read_text(source)):
        logger.info(message)
    if store.status.startswith("Error"):
        raise typer.Exit(code=1)
    _print_project(store, as_json)


@app.command()
def apply(
    operations: Path = typer.Argument(..., help="File operations: a JSON array, a fileOperations object, or raw AI reply text.", exists=True, dir_okay=False),
    structure_file: Optional[Path] = typer.Option(None, "--structure", "-s", help="Structure text to import first.", exists=True, dir_okay=False),
    defaults: bool = typer.Option(False, "--defaults", help="Start from the starter project."),
    as_json: bool = typer.Option(False, "--json", help="Print entries as JSON."),
):
    """Applies a batch of file operations and prints the resulting project."""
    store = _new_store(defaults)
    if structure_file is not None:
        store.import_structure(_read_text(structure_file))

    ops = load_operation_batch(_read_text(operations))
    if ops is None:
        logger.error(f"No file operations found in {operations}")
        raise typer.Exit(code=1)

    result = store.apply_operations(ops)
    for message in result.messages:
        (logger.warning if message.startswith("Error") else logger.info)(message)
    _print_project(store, as_json)
    if not result.ok:
        raise typer.Exit(code=2)


@app.command()
def extract(
    source: Path = typer.Argument(..., help="Text containing a JSON payload, e.g. a saved AI reply.", exists=True, dir_okay=False),
):
    """Prints the JSON payload recovered from free-form text."""
    extracted = extract_json(_read_text(source))
    if extracted is None:
        logger.error("No JSON payload found.")
        raise typer.Exit(code=1)
    if extracted.has_file_operations:
        print(json.dumps({"fileOperations": [op.to_dict() for op in extracted.file_operations]}, indent=2))
    else:
        print(json.dumps(extracted.value, indent=2))


@app.command()
def push(
    source: Path = typer.Argument(..., help="File whose content is pushed.", exists=True, dir_okay=False),
    token: str = typer.Option(..., "--token", envvar="CODEWEAVER_GITLAB_TOKEN", help="GitLab personal access token."),
    target: Optional[str] = typer.Option(None, "--path", help="Repository path (defaults to the file name)."),
    branch: Optional[str] = typer.Option(None, "--branch", help="Branch (defaults to gitlab.default_branch)."),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message (defaults to gitlab.default_commit_message)."),
):
    """Commits one local file to the configured GitLab project."""
    path = target or source.name
    store = ProjectStore([ProjectEntry.file(path, _read_text(source))], active_path=path)
    try:
        client = GitLabClient.from_config(get_config().gitlab, token)
        client.connect()
    except GitLabError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    url = push_active_file(store, client, branch, message)
    if url is None:
        logger.error(store.status)
        raise typer.Exit(code=1)
    print(url)


@app.command()
def config(
    write: bool = typer.Option(False, "--write", help="Save the effective settings to config.json."),
):
    """Prints the effective configuration as JSON."""
    settings = get_config()
    if write:
        save_config(settings)
    print(settings.model_dump_json(indent=2))


@app.command()
def language(path: str = typer.Argument(..., help="Project path, e.g. src/app.py")):
    """Prints the language tag for a path."""
    print(language_for_path(path))


if __name__ == "__main__":
    app()
