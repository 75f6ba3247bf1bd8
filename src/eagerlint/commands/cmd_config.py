"""Manage per-project eagerlint configuration (.eagerlint/config.json)."""

from __future__ import annotations

import click

from eagerlint.analysis.settings import DetectorSettings
from eagerlint.config import config_path, find_project_root, load_project_config, write_project_config
from eagerlint.output.formatter import json_envelope, to_json


def _echo_saved(json_mode: bool, verdict: str, path, lines: list[str], **payload) -> None:
    if json_mode:
        click.echo(to_json(json_envelope("config", summary={"verdict": verdict}, config_path=str(path), **payload)))
        return
    for line in lines:
        click.echo(line)
    click.echo(f"Config written to {path}")


@click.command("config")
@click.option("--exclude", "exclude_pattern", default=None,
              help="Add a glob pattern to the exclude list in .eagerlint/config.json.")
@click.option("--remove-exclude", "remove_pattern", default=None,
              help="Remove a glob pattern from the exclude list in .eagerlint/config.json.")
@click.option("--set-threshold", "threshold", default=None, type=click.IntRange(min=1),
              help="Calls in a query chain before it is reported as complex.")
@click.option("--show", is_flag=True, help="Print current configuration and effective settings.")
@click.pass_context
def config(ctx, exclude_pattern, remove_pattern, threshold, show):
    """Manage per-project eagerlint configuration (.eagerlint/config.json).

    Use ``--exclude`` to skip files during ``eagerlint check``:

    \b
      eagerlint config --exclude "database/migrations/**"
      eagerlint config --remove-exclude "database/migrations/**"

    Vocabularies can be extended by editing the file directly, e.g.
    ``"utility_classes": ["Settings"]`` or ``"batch_methods": ["eachChunk"]``.
    """
    json_mode = ctx.obj.get("json") if ctx.obj else False
    root = find_project_root()
    current = load_project_config(root)
    existing_excludes = current.get("exclude", [])
    if not isinstance(existing_excludes, list):
        existing_excludes = []

    if threshold is not None:
        path = write_project_config({"complex_chain_threshold": threshold}, root)
        _echo_saved(json_mode, "saved", path, [f"Saved complex_chain_threshold = {threshold}"],
                    complex_chain_threshold=threshold)
        return

    if exclude_pattern is not None:
        if exclude_pattern not in existing_excludes:
            existing_excludes.append(exclude_pattern)
        path = write_project_config({"exclude": existing_excludes}, root)
        _echo_saved(
            json_mode,
            "exclude-added",
            path,
            [f"Added exclude pattern: {exclude_pattern!r}", f"Active config excludes: {existing_excludes}"],
            pattern=exclude_pattern,
            exclude=existing_excludes,
        )
        return

    if remove_pattern is not None:
        if remove_pattern in existing_excludes:
            existing_excludes.remove(remove_pattern)
            path = write_project_config({"exclude": existing_excludes}, root)
            _echo_saved(
                json_mode,
                "exclude-removed",
                path,
                [f"Removed exclude pattern: {remove_pattern!r}", f"Active config excludes: {existing_excludes}"],
                pattern=remove_pattern,
                exclude=existing_excludes,
            )
            return
        if json_mode:
            click.echo(
                to_json(
                    json_envelope(
                        "config",
                        summary={"verdict": "not-found", "pattern": remove_pattern},
                        exclude=existing_excludes,
                    )
                )
            )
            return
        click.echo(f"Pattern {remove_pattern!r} not found in exclude list.")
        if existing_excludes:
            click.echo(f"Current excludes: {existing_excludes}")
        return

    # --show (also the default with no options)
    settings = DetectorSettings.from_config(current)
    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "config",
                    summary={"verdict": "ok" if current else "defaults"},
                    config_path=str(config_path(root)),
                    config=current,
                    effective=settings.to_dict(),
                )
            )
        )
        return
    if not current:
        click.echo("No .eagerlint/config.json found (using defaults).")
    else:
        click.echo(f"Config: {config_path(root)}")
        for key in sorted(current):
            click.echo(f"  {key} = {current[key]!r}")
    click.echo(f"Effective complex_chain_threshold: {settings.complex_chain_threshold}")
    click.echo(f"Active excludes: {existing_excludes or '(none)'}")
