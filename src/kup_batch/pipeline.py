"""Two-pass batch orchestration: generate every report, then render every PDF."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence
from uuid import uuid4

from kup_batch.artifacts import (
    PeriodArtifacts,
    artifact_paths,
    discard_intermediate,
    final_name,
    intermediate_name,
)
from kup_batch.config import AppSettings, ConverterConfig, ExitCodePolicy, GeneratorConfig
from kup_batch.process import CommandResult, run_command, run_to_file

LOGGER = logging.getLogger(__name__)

EXIT_CODE_POLICIES: frozenset[str] = frozenset({"ignore", "warn"})


@dataclass(frozen=True, slots=True)
class BatchRunOptions:
    """Runtime overrides applied on top of settings."""

    dry_run: bool = False
    exit_code_policy: ExitCodePolicy | None = None
    name_prefix: str | None = None


@dataclass(slots=True)
class BatchRunResult:
    """Return object for batch run outcomes."""

    run_id: str
    periods: list[str]
    name_prefix: str
    dry_run: bool = False
    generation: list[CommandResult] = field(default_factory=list)
    conversion: list[CommandResult] = field(default_factory=list)
    planned: list[list[str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    final_paths: list[Path] = field(default_factory=list)
    duration_sec: float = 0.0


def generator_args(generator: GeneratorConfig, period: str) -> list[str]:
    """Build the generator command line; the period is the final argument."""

    return [*generator.command, period]


def converter_args(converter: ConverterConfig, name_prefix: str, period: str) -> list[str]:
    """Build the converter command line using names relative to the work dir."""

    return [
        *converter.command,
        intermediate_name(period),
        "-o",
        final_name(name_prefix, period),
        converter.engine_argument(),
    ]


def _report_result(
    stage: str,
    period: str,
    result: CommandResult,
    *,
    policy: ExitCodePolicy,
    warnings: list[str],
    logger: logging.Logger,
) -> None:
    """Apply the exit-code policy to one finished command.

    Under ``ignore`` both launch failures and non-zero statuses stay at DEBUG;
    ``warn`` logs them as warnings and collects them on the run result.
    """

    if not result.launched and policy == "ignore":
        logger.debug("batch_run.%s_launch_failed period=%s error=%s", stage, period, result.launch_error)
        return

    if not result.launched:
        warnings.append(f"{stage} period={period} {result.describe()}")
        logger.warning("batch_run.%s_launch_failed period=%s error=%s", stage, period, result.launch_error)
        return

    if result.succeeded or policy == "ignore":
        logger.debug(
            "batch_run.%s_done period=%s returncode=%s elapsed_sec=%.2f",
            stage,
            period,
            result.returncode,
            result.duration_sec,
        )
        return

    message = f"{stage} period={period} {result.describe()}"
    warnings.append(message)
    logger.warning("batch_run.%s_nonzero_exit period=%s returncode=%s", stage, period, result.returncode)


def run_batch(
    periods: Sequence[str],
    name_prefix: str,
    *,
    generator: GeneratorConfig,
    converter: ConverterConfig,
    work_dir: Path,
    exit_code_policy: ExitCodePolicy = "ignore",
    dry_run: bool = False,
    logger: logging.Logger | None = None,
) -> BatchRunResult:
    """Generate a text report per period, then convert each one to PDF.

    Generation finishes for every period before any conversion starts. Child exit
    statuses and launch failures never stop the run; with
    ``exit_code_policy="warn"`` they are logged and collected in
    ``BatchRunResult.warnings``. Each
    intermediate text file is deleted after its conversion attempt whatever the
    outcome. Periods are used verbatim and duplicates are processed again.
    """

    if exit_code_policy not in EXIT_CODE_POLICIES:
        raise ValueError(f"exit_code_policy must be one of: {','.join(sorted(EXIT_CODE_POLICIES))}")

    effective_logger = logger or LOGGER
    period_list = list(periods)
    run_id = f"batch-run-{uuid4().hex[:12]}"
    started_mono = time.monotonic()
    result = BatchRunResult(run_id=run_id, periods=period_list, name_prefix=name_prefix, dry_run=dry_run)
    generator_cwd = generator.cwd or work_dir

    effective_logger.info(
        "batch_run.start run_id=%s periods=%s prefix=%s policy=%s dry_run=%s work_dir=%s",
        run_id,
        len(period_list),
        name_prefix,
        exit_code_policy,
        dry_run,
        work_dir,
    )

    artifacts: list[PeriodArtifacts] = [artifact_paths(work_dir, name_prefix, period) for period in period_list]

    if dry_run:
        for period in period_list:
            result.planned.append(generator_args(generator, period))
        for period in period_list:
            result.planned.append(converter_args(converter, name_prefix, period))
        for planned in result.planned:
            effective_logger.info("batch_run.planned %s", " ".join(planned))
        result.final_paths = [item.final_path for item in artifacts]
        result.duration_sec = time.monotonic() - started_mono
        return result

    work_dir.mkdir(parents=True, exist_ok=True)

    for item in artifacts:
        generated = run_to_file(
            generator_args(generator, item.period),
            item.intermediate_path,
            cwd=generator_cwd,
        )
        result.generation.append(generated)
        _report_result(
            "generate",
            item.period,
            generated,
            policy=exit_code_policy,
            warnings=result.warnings,
            logger=effective_logger,
        )
    effective_logger.info("batch_run.generate_complete run_id=%s periods=%s", run_id, len(period_list))

    for item in artifacts:
        converted = run_command(converter_args(converter, name_prefix, item.period), cwd=work_dir)
        result.conversion.append(converted)
        _report_result(
            "convert",
            item.period,
            converted,
            policy=exit_code_policy,
            warnings=result.warnings,
            logger=effective_logger,
        )
        discard_intermediate(item, logger=effective_logger)
        result.final_paths.append(item.final_path)

    result.duration_sec = time.monotonic() - started_mono
    effective_logger.info(
        "batch_run.done run_id=%s periods=%s warnings=%s elapsed_sec=%.2f",
        run_id,
        len(period_list),
        len(result.warnings),
        result.duration_sec,
    )
    return result


def run_batch_from_settings(
    settings: AppSettings,
    *,
    options: BatchRunOptions | None = None,
    logger: logging.Logger | None = None,
) -> BatchRunResult:
    """Run the configured batch with optional CLI overrides."""

    run_options = options or BatchRunOptions()
    return run_batch(
        settings.batch.periods,
        run_options.name_prefix or settings.batch.name_prefix,
        generator=settings.generator,
        converter=settings.converter,
        work_dir=settings.paths.work_dir,
        exit_code_policy=run_options.exit_code_policy or settings.batch.exit_code_policy,
        dry_run=run_options.dry_run,
        logger=logger,
    )
