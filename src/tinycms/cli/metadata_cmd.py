"""Metadata CLI commands."""

from pathlib import Path

import click

from tinycms.config import Settings
from tinycms.metadata.validator import validate_metadata_dir, validate_yaml_file


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Metadata directory, or a single collection YAML file "
    "(default: $TINYCMS_METADATA_PATH).",
)
def validate(strict: bool, target_path: Path | None):
    """Validate collection YAML files against the JSON Schema and semantic rules."""
    if target_path is not None and target_path.is_file():
        issues = validate_yaml_file(target_path)
        if strict:
            for issue in issues:
                issue.severity = "error"
        files = [target_path]
    else:
        metadata_path = target_path or Settings.from_env().metadata_path
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        issues = validate_metadata_dir(metadata_path, strict=strict)
        files = sorted((metadata_path / "collections").glob("*.yaml"))

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    click.echo(f"\nChecked {len(files)} collection file(s):")
    for path in files:
        click.echo(f"  ✓ {path.name}")

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))
