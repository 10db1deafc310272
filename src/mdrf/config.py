"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from mdrf.core.models import GenerationOptions


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:       str = "mdrf"
    yaml_indent:    int = Field(default=2, ge=0, description="Spaces per level in emitted YAML")
    auto_numbering: bool = Field(default=False, description="Renumber threads and comment ids on generate")
    encoding:       str = Field(default="utf-8", description="Text encoding for input and output files")
    log_level:      str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$", description="Root log level")

    def generation_options(self) -> GenerationOptions:
        return GenerationOptions(yaml_indent=self.yaml_indent, auto_numbering=self.auto_numbering)


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDRF_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDRF_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
