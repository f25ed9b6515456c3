"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "KUP_BATCH_SETTINGS_FILE"

ExitCodePolicy = Literal["ignore", "warn"]

DEFAULT_PERIODS: tuple[str, ...] = (
    "2024-01",
    "2024-02",
    "2024-03",
    "2024-04",
    "2024-05",
    "2024-06",
    "2024-07",
    "2024-08",
    "2024-09",
    "2024-10",
    "2024-11",
    "2024-12",
)


class ProjectConfig(BaseModel):
    """Project metadata settings."""

    name: str = "kup_batch"
    env: str = "dev"


class PathsConfig(BaseModel):
    """Filesystem locations for batch outputs and logs."""

    work_dir: Path = Path("./out")
    logs_root: Path = Path("./logs")

    def resolved(self, project_root: Path) -> "PathsConfig":
        """Return a copy with project-relative paths resolved to absolute paths."""

        updates: dict[str, Path] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            updates[field_name] = value if value.is_absolute() else (project_root / value).resolve()
        return self.model_copy(update=updates)


class GeneratorConfig(BaseModel):
    """Report generator invocation; the period is appended as the last argument."""

    command: list[str] = Field(
        default_factory=lambda: ["cargo", "run", "--quiet", "--release", "--"],
        min_length=1,
    )
    cwd: Path | None = None


class ConverterConfig(BaseModel):
    """PDF converter invocation and rendering engine selection."""

    command: list[str] = Field(default_factory=lambda: ["pandoc"], min_length=1)
    pdf_engine: str = "xelatex"
    engine_option: str = "--pdf-engine"

    def engine_argument(self) -> str:
        """Return the ``--option=engine`` argument passed to the converter."""

        return f"{self.engine_option}={self.pdf_engine}"


class BatchConfig(BaseModel):
    """Work items and naming for one batch run."""

    periods: list[str] = Field(default_factory=lambda: list(DEFAULT_PERIODS))
    name_prefix: str = "KUP"
    exit_code_policy: ExitCodePolicy = "ignore"


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)

    model_config = SettingsConfigDict(
        env_prefix="KUP_BATCH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary."""

        return self.model_dump(mode="json")


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / "configs/settings.yaml").exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides."""

    settings_file = resolve_settings_file(config_file)
    project_root = settings_file.parent.parent.resolve()
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    finally:
        AppSettings._yaml_file_override = None
    updates: dict[str, object] = {"paths": settings.paths.resolved(project_root=project_root)}
    generator_cwd = settings.generator.cwd
    if generator_cwd is not None and not generator_cwd.is_absolute():
        updates["generator"] = settings.generator.model_copy(
            update={"cwd": (project_root / generator_cwd).resolve()}
        )
    return settings.model_copy(update=updates)
