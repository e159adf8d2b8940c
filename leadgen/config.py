"""
Settings for the pipeline, loaded from ``configs/pipeline.yaml`` and
``configs/sender_configs.yaml`` with environment overrides from ``.env``.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from leadgen.errors import ConfigurationError
from leadgen.llm_client import DEFAULT_MODEL
from leadgen.models.state import SenderProfile

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"


class RetryPolicy(BaseModel):
    # transport layer: transient faults only
    transport_retries: int = Field(3, ge=0)
    transport_initial_delay: float = Field(1.0, ge=0)
    # semantic layer: transport + parse + shape failures
    semantic_retries: int = Field(3, ge=0)
    semantic_initial_delay: float = Field(1.0, ge=0)
    inner_transport_retries: int = Field(2, ge=0)


class ResearchPolicy(BaseModel):
    detail_retries: int = Field(2, ge=0)
    validation_retries: int = Field(2, ge=0)
    stagger_delay: float = Field(0.25, ge=0)
    discovery_progress: float = 5.0
    progress_start: float = 10.0
    progress_end: float = 95.0


class PipelineSettings(BaseModel):
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    use_search: bool = True
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    research: ResearchPolicy = Field(default_factory=ResearchPolicy)
    database_path: str = str(PROJECT_ROOT / "data" / "leads.db")
    audit_log_url: Optional[str] = None
    audit_log_timeout: float = 10.0
    daily_generation_limit: int = Field(10, ge=0)


_ENV_OVERRIDES = {
    "LEADGEN_MODEL": "model",
    "LEADGEN_DB_PATH": "database_path",
    "LEADGEN_AUDIT_LOG_URL": "audit_log_url",
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file '{path}' was not found")
    try:
        with open(path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Configuration file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")
    return data


def load_settings(path: Optional[Union[str, Path]] = None) -> PipelineSettings:
    """
    Load pipeline settings.

    Args:
        path: YAML file to read. Defaults to ``$LEADGEN_CONFIG`` or
            ``configs/pipeline.yaml``; a missing default file means defaults.

    Returns:
        PipelineSettings: validated settings with environment overrides applied.
    """
    explicit = path or os.getenv("LEADGEN_CONFIG")
    config_path = Path(explicit) if explicit else CONFIG_DIR / "pipeline.yaml"

    data: Dict[str, Any] = {}
    if explicit or config_path.exists():
        data = _read_yaml(config_path)

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data[field_name] = value

    try:
        settings = PipelineSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid pipeline configuration in '{config_path}': {exc}") from exc

    logger.debug(f"Loaded pipeline settings from {config_path}")
    return settings


def load_sender_profile(path: Optional[Union[str, Path]] = None) -> SenderProfile:
    """Load the default sender identity; a missing default file means no sender."""
    config_path = Path(path) if path else CONFIG_DIR / "sender_configs.yaml"
    if not path and not config_path.exists():
        return SenderProfile()

    sender_config = _read_yaml(config_path)
    try:
        return SenderProfile.model_validate(sender_config)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid sender configuration in '{config_path}': {exc}") from exc
