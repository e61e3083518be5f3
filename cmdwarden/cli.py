"""
cli.py - Command-line interface for cmdwarden

This module provides the command-line interface for the cmdwarden tool,
allowing users to score command definitions and hooks for security issues
and to apply safe fixes to command files.
"""

import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .core import (
    CommandScanner,
    ConfigurationError,
    Fixer,
    disable_rules,
    generate_default_config,
    load_config,
    scan_commands,
    validate_hooks_settings,
)
from .core.fixer import FIX_ORDER
from .reports import (
    format_console_report,
    format_fix_result,
    format_hooks_report,
    generate_fix_json_report,
    generate_hooks_json_report,
    generate_json_report,
)
from .rules import all_patterns
from .utils.version import __version__

OUTPUT_FORMATS = ["text", "json"]

COMMAND_FILE_SUFFIX = ".md"

DEFAULT_MIN_SCORE = 40


def _load_config(config: Optional[str]) -> Dict[str, Any]:
    """Load configuration, exiting with status 1 if it is invalid"""
    try:
        return load_config(config)
    except ConfigurationError as e:
        click.echo(f"Error loading config file: {e}", err=True)
        sys.exit(1)


def discover_command_files(paths: Tuple[str, ...]) -> List[Path]:
    """
    Expand files and directories into a list of command files

    Args:
        paths: Files or directories; directories are searched recursively

    Returns:
        Command file paths, in argument order
    """
    files: List[Path] = []

    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob(f"*{COMMAND_FILE_SUFFIX}") if p.is_file()))
        else:
            files.append(path)

    return files


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"Error reading {path}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Log what each check and fix decides")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """cmdwarden - command and hook security scanner

    Scores slash-command definitions and hook settings for dangerous shell
    constructs and over-broad tool grants, and applies safe fixes.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--source-url", help="Repository the commands were imported from")
@click.option(
    "--config", type=click.Path(exists=True), help="Path to YAML config file for check settings"
)
@click.option("--disable", multiple=True, help="Disable specific check(s)")
@click.option(
    "--output",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    help="Output format for results",
)
@click.option(
    "--output-file",
    type=click.Path(),
    help="Write output to file instead of stdout",
)
@click.option(
    "--min-score",
    type=click.IntRange(0, 100),
    default=DEFAULT_MIN_SCORE,
    show_default=True,
    help="Exit with status 1 if any command scores below this",
)
def scan(
    paths: Tuple[str, ...],
    source_url: Optional[str],
    config: Optional[str],
    disable: Tuple[str, ...],
    output: str,
    output_file: Optional[str],
    min_score: int,
) -> None:
    """Score command definitions for security issues (read-only)

    PATHS: Command files, or directories searched for *.md files
    """
    config_data = _load_config(config)
    if disable:
        config_data = disable_rules(config_data, list(disable))

    files = discover_command_files(paths)
    if not files:
        click.echo("No command files found", err=True)
        sys.exit(1)

    commands = [(str(path), _read_text(path)) for path in files]
    results, stats = scan_commands(commands, source_url=source_url, config=config_data)

    show_recommendations = config_data.get("report", {}).get("include_recommendations", True)

    if output == "json":
        report = generate_json_report(results, stats)
    else:
        report = format_console_report(results, stats, show_recommendations=show_recommendations)

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(click.unstyle(report))
        click.echo(f"Results written to {output_file}")
    else:
        click.echo(report)

    below = [result for result in results if result.trust_score < min_score]
    if below:
        if output == "text" or output_file:
            click.echo(
                f"{len(below)} command(s) scored below {min_score}",
                err=True,
            )
        sys.exit(1)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--config", type=click.Path(exists=True), help="Path to YAML config file for fix settings"
)
@click.option("--dry-run", is_flag=True, help="Show what would be fixed without making changes")
@click.option(
    "--backup/--no-backup",
    default=True,
    show_default=True,
    help="Keep a .bak copy of each file before rewriting it",
)
@click.option(
    "--output",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    help="Output format for results",
)
def fix(
    paths: Tuple[str, ...],
    config: Optional[str],
    dry_run: bool,
    backup: bool,
    output: str,
) -> None:
    """Apply safe fixes to command definitions

    PATHS: Command files, or directories searched for *.md files
    """
    config_data = _load_config(config)

    files = discover_command_files(paths)
    if not files:
        click.echo("No command files found", err=True)
        sys.exit(1)

    if dry_run and output == "text":
        click.echo("Running in dry-run mode. No changes will be made.")

    fixer = Fixer(config=config_data)
    results = []
    fixes_skipped = 0

    for path in files:
        result = fixer.fix_command(str(path), _read_text(path))
        results.append(result)
        fixes_skipped += fixer.fixes_skipped

        if result.changed and not dry_run:
            try:
                if backup:
                    shutil.copy2(path, f"{path}.bak")
                path.write_text(result.after, encoding="utf-8")
            except OSError as e:
                click.echo(f"Error fixing {path}: {e}", err=True)
                sys.exit(1)

        if output == "text":
            click.echo(format_fix_result(result, show_diff=dry_run), nl=False)

    if output == "json":
        click.echo(generate_fix_json_report(results, include_text=dry_run))
        return

    changed = sum(1 for result in results if result.changed)
    total_changes = sum(len(result.changes_applied) for result in results)

    click.echo("\n----- Fix Summary -----")
    click.echo(f"Commands checked: {len(results)}")
    click.echo(f"Commands {'fixable' if dry_run else 'fixed'}: {changed}")
    click.echo(f"Fixes {'available' if dry_run else 'applied'}: {total_changes}")
    if fixes_skipped:
        click.echo(f"Fixes skipped after errors: {fixes_skipped}")

    if changed == 0:
        click.echo("\n✅ No fixes needed!")
    elif dry_run:
        click.echo("\n✅ Issues can be fixed (run without --dry-run to apply)")
    else:
        click.echo("\n✅ Fixes applied successfully!")


@cli.command()
@click.argument("settings_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config", type=click.Path(exists=True), help="Path to YAML config file for report settings"
)
@click.option(
    "--output",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    help="Output format for results",
)
@click.pass_context
def hooks(ctx: click.Context, settings_file: str, config: Optional[str], output: str) -> None:
    """Validate the hooks in a settings JSON file

    SETTINGS_FILE: Path to a settings.json file
    """
    report_config = _load_config(config).get("report", {})

    try:
        with open(settings_file, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (OSError, ValueError) as e:
        click.echo(f"Error reading {settings_file}: {e}", err=True)
        sys.exit(1)

    summaries = validate_hooks_settings(settings)

    if output == "json":
        click.echo(generate_hooks_json_report(summaries))
    else:
        verbose = bool(ctx.obj and ctx.obj.get("verbose")) or report_config.get("verbose", False)
        click.echo(
            format_hooks_report(
                summaries,
                verbose=verbose,
                show_recommendations=report_config.get("include_recommendations", True),
            )
        )

    if any(summary.worst_score == "red" for summary in summaries):
        sys.exit(1)


def _list_fixes(config_data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    fixer = Fixer(config=config_data)
    return [
        {
            "id": fix_id,
            "enabled": fixer.is_enabled(fix_id),
            "description": (fixer.fixers[fix_id].__doc__ or "").strip(),
        }
        for fix_id in FIX_ORDER
    ]


@cli.command()
@click.option(
    "--format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
def rules(format: str) -> None:
    """List all checks, patterns and fixes"""

    checks = CommandScanner().list_rules()
    patterns = [pattern.to_dict() for pattern in all_patterns()]
    fixes = _list_fixes()

    if format == "json":
        click.echo(json.dumps({"checks": checks, "patterns": patterns, "fixes": fixes}, indent=2))
        return

    severity_colors = {
        "critical": "bright_red",
        "high": "red",
        "warning": "yellow",
    }

    click.echo("🔍 cmdwarden runs the following checks:")
    for check in checks:
        click.echo(f" - {check['id']}: {check['description']}")

    by_category: Dict[str, List[Dict[str, Any]]] = {}
    for pattern in patterns:
        by_category.setdefault(pattern["category"], []).append(pattern)

    for category, category_patterns in by_category.items():
        click.echo(f"\n{category.upper()}:")

        for pattern in category_patterns:
            severity_text = click.style(
                f"[{pattern['severity']}]", fg=severity_colors.get(pattern["severity"], "white")
            )
            click.echo(f" - {pattern['id']}: {severity_text} {pattern['message']}")

    click.echo("\nFIXES:")
    for fix_info in fixes:
        click.echo(f" - {fix_info['id']}: {fix_info['description']}")


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to YAML config file to validate")
@click.option("--generate", is_flag=True, help="Generate a default config file")
@click.option("--output", type=click.Path(), help="Output path for generated config")
def config(config: Optional[str], generate: bool, output: Optional[str]) -> None:
    """View or validate current config"""
    if generate:
        try:
            config_str = generate_default_config(output_path=output)
        except ConfigurationError as e:
            click.echo(f"❌ {e}", err=True)
            sys.exit(1)

        if output:
            click.echo(f"Default config written to {output}")
        else:
            click.echo(config_str)
        return

    try:
        config_data = load_config(config)
    except ConfigurationError as e:
        click.echo(f"❌ Config validation failed: {e}", err=True)
        sys.exit(1)

    click.echo("✅ Config loaded and valid.")

    for rule_info in CommandScanner(config=config_data).list_rules():
        click.echo(f" - {rule_info['id']}: {'enabled' if rule_info['enabled'] else 'disabled'}")

    auto_fix_enabled = config_data.get("auto_fix", {}).get("enabled", True)
    click.echo(f"Auto-fix: {'enabled' if auto_fix_enabled else 'disabled'}")
    for fix_info in _list_fixes(config_data):
        click.echo(f" - {fix_info['id']}: {'enabled' if fix_info['enabled'] else 'disabled'}")


if __name__ == "__main__":
    cli()
