"""
Prediction and application configuration.

Search parameters live in PredictionConfig; the element sources and
request settings used by the CLI live in AppConfig, which can be loaded
from a YAML file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging
import os

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PASS_PREDICTOR_CONFIG"

DEFAULT_STEP_SECONDS = 600
DEFAULT_MAX_STEPS = 12
DEFAULT_THRESHOLD_KM = 1000.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


@dataclass
class PredictionConfig:
    """
    Parameters for one prediction run.

    The horizon is ``step_seconds * max_steps``; samples are taken at every
    step from the start instant up to and including the horizon.
    """

    step_seconds: float = DEFAULT_STEP_SECONDS
    max_steps: int = DEFAULT_MAX_STEPS
    threshold_km: float = DEFAULT_THRESHOLD_KM
    max_workers: Optional[int] = None
    parallel: bool = False

    def __post_init__(self) -> None:
        """Validate prediction parameters."""
        if self.step_seconds <= 0:
            raise ValueError(f"step_seconds must be positive, got {self.step_seconds}")
        if self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")
        if self.threshold_km <= 0:
            raise ValueError(f"threshold_km must be positive, got {self.threshold_km}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @property
    def horizon_seconds(self) -> float:
        return self.step_seconds * self.max_steps

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_seconds": self.step_seconds,
            "max_steps": self.max_steps,
            "threshold_km": self.threshold_km,
            "max_workers": self.max_workers,
            "parallel": self.parallel,
        }


def _default_sources() -> Dict[str, str]:
    from .sources import DEFAULT_SOURCES

    return dict(DEFAULT_SOURCES)


@dataclass
class AppConfig:
    """Configuration used by the command-line interface."""

    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    sources: Dict[str, str] = field(default_factory=_default_sources)
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """
        Build configuration from a parsed YAML document.

        Args:
            data: Mapping with optional ``prediction``, ``sources`` and
                ``request_timeout_seconds`` keys

        Raises:
            ValueError: If a section has the wrong shape or invalid values
        """
        prediction_data = data.get("prediction") or {}
        if not isinstance(prediction_data, dict):
            raise ValueError("'prediction' section must be a mapping")
        try:
            prediction = PredictionConfig(**prediction_data)
        except TypeError as e:
            raise ValueError(f"Invalid 'prediction' section: {e}")

        sources = data.get("sources")
        if sources is None:
            sources = _default_sources()
        elif not isinstance(sources, dict):
            raise ValueError("'sources' section must be a mapping of key to URL")
        else:
            sources = {str(key).lower(): str(url) for key, url in sources.items()}

        timeout = float(data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS))
        if timeout <= 0:
            raise ValueError(f"request_timeout_seconds must be positive, got {timeout}")

        return cls(prediction=prediction, sources=sources, request_timeout_seconds=timeout)


def load_config(config_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file. Falls back to the
            PASS_PREDICTOR_CONFIG environment variable, then to defaults.

    Returns:
        AppConfig instance

    Raises:
        ValueError: If the file cannot be read or holds invalid values
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)
    if not config_path:
        logger.debug("No configuration file given, using defaults")
        return AppConfig()

    path = Path(config_path)
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Could not read configuration file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    config = AppConfig.from_dict(data)
    logger.info(f"Loaded configuration from {path} ({len(config.sources)} sources)")
    return config
