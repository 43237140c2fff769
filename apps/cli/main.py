"""CLI application for depwatch."""

import asyncio
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from depwatch.checker import Checker
from depwatch.config import CheckerOptions, Reporter, UpdatePolicy
from depwatch.errors import DepwatchError
from depwatch.models import ManifestFile

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Send library logs to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def read_manifest(file_path: str) -> ManifestFile:
    """Load a manifest file, or stdin for '-'."""
    if file_path == "-":
        return ManifestFile(path="<stdin>", contents=sys.stdin.read().encode("utf-8"))

    path_obj = Path(file_path)
    if not path_obj.exists():
        console.print(f"Error: File {file_path} not found", style="red")
        raise typer.Exit(1)
    return ManifestFile(path=file_path, contents=path_obj.read_bytes())


async def check_files(checker: Checker, files: list[ManifestFile]) -> list[ManifestFile]:
    """Check every file, stopping at the first failure."""
    return [file async for file in checker.transform(files)]


app = typer.Typer(
    name="depwatch",
    help="depwatch - Check package.json dependencies against the npm registry",
    add_completion=False,
)


@app.command()
def check(
    paths: list[str] = typer.Argument(None, help="package.json files to check (use '-' for stdin)"),
    update: str | None = typer.Option(None, "--update", "-u", help="Rewrite outdated constraints with this range prefix, e.g. '^' or '~'"),
    in_place: bool = typer.Option(False, "--in-place", "-i", help="Write rewritten manifests back to disk"),
    unstable: bool = typer.Option(False, "--unstable", help="Compare against and update to pre-release versions"),
    error_404: bool = typer.Option(False, "--error-404", help="Fail when a package is not in the registry"),
    error_dep_count: int = typer.Option(0, "--error-dep-count", min=0, help="Fail when this many dependencies are outdated (0 disables)"),
    error_dep_type: bool = typer.Option(False, "--error-dep-type", help="Fail on malformed dependency entries"),
    error_scm: bool = typer.Option(False, "--error-scm", help="Fail on source-control hosted dependencies"),
    ignore: list[str] = typer.Option(None, "--ignore", help="Package name to skip (repeatable)"),
    registry: str | None = typer.Option(None, "--registry", help="npm registry URL"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the report"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """depwatch - Report outdated dependencies in package.json manifests."""
    setup_logging(verbose)

    options = CheckerOptions.from_env(
        error_404=error_404,
        error_dep_count=error_dep_count,
        error_dep_type=error_dep_type,
        error_scm=error_scm,
        ignore=tuple(ignore or ()),
        registry=registry,
        reporter=Reporter.disabled() if quiet else Reporter.default(),
        update=UpdatePolicy.with_prefix(update) if update is not None else UpdatePolicy.disabled(),
        unstable=unstable,
    )

    files = [read_manifest(file_path) for file_path in (paths or ["package.json"])]
    # Rewritten manifests go to stdout, so the report moves to stderr
    to_stdout = options.update.enabled and any(not in_place or f.path == "<stdin>" for f in files)
    checker = Checker(options, console=err_console if to_stdout else console)

    try:
        checked = asyncio.run(check_files(checker, files))
    except DepwatchError as e:
        console.print(f"Error: {e}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(1)

    if not options.update.enabled:
        return

    for file in checked:
        if in_place and file.path != "<stdin>":
            Path(file.path).write_bytes(file.contents)
            console.print(f"Updated {file.path}")
        else:
            typer.echo(file.contents.decode("utf-8"))


if __name__ == "__main__":
    app()
