"""Command-line interface for Pyslate.

Every build target is a command of the ``pyslate`` group:

- clean: Empty the build directory.
- lint: Check the built page and the application scripts.
- build-js, build-css, build-html, build-highlightjs: Single build steps.
- build-static-site: Build everything.
- build-uncompressed: Build everything without minification.
- serve: Run the development server with live reload.

Commands run from the project root (the directory holding ``source/``) and
exit with status 1 when any task fails.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .build import BuildOptions, Orchestrator
from .errors import PyslateError
from .tasks import TaskResult

BUILD_COMMANDS = {
    "build-js": "Bundle the scripts into javascripts/all.js.",
    "build-css": "Compile the SCSS stylesheets.",
    "build-html": "Render the includes into the page templates.",
    "build-highlightjs": "Write the code highlighting theme stylesheet.",
    "build-static-site": "Build the whole site.",
}


@click.group()
@click.version_option(version=__version__, prog_name="pyslate")
def cli():
    """Pyslate documentation site generator."""


def _run_target(target: str, options: BuildOptions | None = None) -> None:
    project_root = Path.cwd()
    try:
        report = Orchestrator(project_root).run([target], options)
    except PyslateError as exc:
        raise click.ClickException(exc.message) from None
    if report.ok:
        click.echo(f"{target} finished")
        return
    click.echo(click.style(f"{target} failed:", fg="red", bold=True), err=True)
    for failure in report.failures:
        _echo_failure(failure, project_root)
    raise SystemExit(1)


def _echo_failure(failure: TaskResult, project_root: Path) -> None:
    exc = failure.error
    click.echo(click.style(f"  Task: {failure.name}", fg="yellow"), err=True)
    if isinstance(exc, PyslateError):
        if exc.source_path is not None:
            try:
                location = exc.source_path.relative_to(project_root)
            except ValueError:
                location = exc.source_path
            click.echo(click.style(f"  File: {location}", fg="yellow"), err=True)
        message = exc.message
    else:
        message = f"{type(exc).__name__}: {exc}"
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)


def _make_build_command(target: str, help_text: str) -> click.Command:
    @click.option(
        "--uncompressed", is_flag=True, help="Skip minification and prettifying"
    )
    def command(uncompressed: bool):
        _run_target(target, BuildOptions(compress=not uncompressed))

    command.__doc__ = help_text
    return click.command(name=target)(command)


for _target, _help in BUILD_COMMANDS.items():
    cli.add_command(_make_build_command(_target, _help))


@cli.command()
def clean():
    """Empty the build directory."""
    _run_target("clean")


@cli.command()
def lint():
    """Check the built page and the application scripts."""
    _run_target("lint")


@cli.command(name="build-uncompressed")
def build_uncompressed():
    """Build the whole site without minification."""
    _run_target("build-uncompressed")


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides pyslate.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides pyslate.yaml)",
)
@click.option("--compress", is_flag=True, help="Minify assets on every rebuild")
@click.option("--no-open", is_flag=True, help="Do not open a browser window")
def serve(port: int | None, ws_port: int | None, compress: bool, no_open: bool):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(
        project_root,
        http_port=port,
        ws_port=ws_port,
        options=BuildOptions(compress=compress),
        open_browser=not no_open,
    )
    server.start()


def main():
    """Entry point for the CLI application."""
    cli()
