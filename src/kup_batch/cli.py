"""Typer CLI entrypoint for kup_batch."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml

from kup_batch.config import AppSettings, ExitCodePolicy, load_settings
from kup_batch.logging_utils import configure_logging, parse_log_level
from kup_batch.pipeline import BatchRunOptions, run_batch_from_settings
from kup_batch.process import which

app = typer.Typer(
    add_completion=False,
    help="kup_batch command line interface.",
    no_args_is_help=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
    level: int = logging.INFO,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_logging(settings.paths.logs_root, level=level)
    else:
        logger = logging.getLogger("kup_batch")
    return settings, logger


def _exit_code_policy_override(warn_exit_codes: bool | None) -> ExitCodePolicy | None:
    if warn_exit_codes is None:
        return None
    return "warn" if warn_exit_codes else "ignore"


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("run")
def run(
    prefix: str | None = typer.Option(
        None,
        "--prefix",
        help="Override the PDF file name prefix.",
    ),
    warn_exit_codes: bool | None = typer.Option(
        None,
        "--warn-exit-codes/--ignore-exit-codes",
        help="Log child failures as warnings, or keep them silent. Defaults to batch.exit_code_policy.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the planned commands without running them.",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Logging level: DEBUG, INFO, WARNING or ERROR.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Generate every configured period report, then convert each to PDF."""

    if prefix is not None and prefix.strip() == "":
        raise typer.BadParameter("prefix must not be empty.")
    try:
        level = parse_log_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True, level=level)
    options = BatchRunOptions(
        dry_run=dry_run,
        exit_code_policy=_exit_code_policy_override(warn_exit_codes),
        name_prefix=prefix,
    )
    result = run_batch_from_settings(settings, options=options, logger=logger)

    typer.echo(f"run_id: {result.run_id}")
    typer.echo(f"periods_total: {len(result.periods)}")
    if result.dry_run:
        for planned in result.planned:
            typer.echo(" ".join(planned))
        return
    typer.echo(f"warnings: {len(result.warnings)}")
    for final_path in result.final_paths:
        status = "present" if final_path.exists() else "missing"
        typer.echo(f"{final_path} [{status}]")


@app.command("check-tools")
def check_tools(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Report whether the generator and converter executables are on PATH."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    missing = 0
    for label, executable in (
        ("generator", settings.generator.command[0]),
        ("converter", settings.converter.command[0]),
    ):
        resolved = which(executable)
        if resolved is None:
            missing += 1
            typer.echo(f"{label}: {executable} [missing]")
        else:
            typer.echo(f"{label}: {resolved}")
    if missing:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
