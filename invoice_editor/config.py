"""Configuration management for the invoice editor."""
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = 'INVOICE_EDITOR_'


class Settings(BaseModel):
    """Runtime settings; each field maps to INVOICE_EDITOR_<FIELD NAME>"""
    data_dir: Path = Path('./invoice_data')
    invoice_prefix: str = Field(default='CORE', min_length=1)
    period_length_days: int = Field(default=30, ge=0)
    log_file: Optional[Path] = None
    verbose: bool = False
    diagnostics_max_entries: int = Field(default=1000, ge=1)


def clean_env_value(value: Optional[str]) -> str:
    """Strip whitespace and surrounding quotes some shells and UIs add"""
    if not value:
        return ""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]
    return value.strip()


def load_settings(environ: Optional[Mapping[str, str]] = None,
                  env_file: Optional[str] = None) -> Settings:
    """
    Build settings from the environment.

    Args:
        environ: Mapping to read instead of os.environ (no .env loading then)
        env_file: Explicit .env path; by default the nearest .env is used

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    values = {}
    for name in Settings.model_fields:
        raw = clean_env_value(environ.get(ENV_PREFIX + name.upper()))
        if raw:
            values[name] = raw

    return Settings(**values)
