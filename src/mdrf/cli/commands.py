"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdrf.config import Settings, load_config
from mdrf.core.generate import generate_from_yaml
from mdrf.core.parse import parse_to_object, parse_to_yaml
from mdrf.errors import MdrfError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling and apply the log level."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return settings


def _read(path: Path, settings: Settings) -> str:
    try:
        return path.read_text(encoding=settings.encoding)
    except OSError as e:
        _fail(f"Cannot read {path}", e)


def _write(text: str, out: Optional[Path], settings: Settings) -> None:
    """Write to out, or to stdout when no output file was given."""
    if out is None:
        typer.echo(text, nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding=settings.encoding)
    typer.echo(f"Wrote {out}", err=True)


def parse_cmd(
    path: Annotated[Path, typer.Argument(help="MDRF file to parse")],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write YAML here instead of stdout")] = None,
    indent: Annotated[Optional[int], typer.Option("--yaml-indent", help="Spaces per YAML nesting level")] = None,
    ):
    """Convert an MDRF file to its YAML object model."""
    settings = _settings(overrides={"yaml_indent": indent})
    try:
        text = parse_to_yaml(_read(path, settings), settings.yaml_indent)
    except MdrfError as e:
        _fail(f"Failed to parse {path}", e)
    _write(text, out, settings)


def generate_cmd(
    path: Annotated[Path, typer.Argument(help="YAML object-model file")],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write MDRF here instead of stdout")] = None,
    indent: Annotated[Optional[int], typer.Option("--yaml-indent", help="Spaces per YAML nesting level")] = None,
    auto_numbering: Annotated[Optional[bool], typer.Option(
        "--auto-numbering/--no-auto-numbering", help="Renumber threads and comment ids sequentially",
    )] = None,
    ):
    """Generate canonical MDRF text from a YAML object model."""
    settings = _settings(overrides={"yaml_indent": indent, "auto_numbering": auto_numbering})
    try:
        text = generate_from_yaml(_read(path, settings), settings.generation_options())
    except MdrfError as e:
        _fail(f"Failed to generate MDRF from {path}", e)
    _write(text, out, settings)


def check_cmd(
    path: Annotated[Path, typer.Argument(help="MDRF file to validate")],
    ):
    """Parse an MDRF file and print a structure summary."""
    settings = _settings()
    try:
        doc = parse_to_object(_read(path, settings))
    except MdrfError as e:
        _fail(f"{path} is not valid MDRF", e)

    files = [f for g in doc.groups for f in g.files]
    threads = [t for f in files for t in f.threads]
    comments = sum(len(t.comments) for t in threads)
    typer.echo(
        f"{doc.title}: "
        f"{len(doc.groups)} group(s), "
        f"{len(files)} file(s), "
        f"{len(threads)} thread(s), "
        f"{comments} comment(s)"
    )
