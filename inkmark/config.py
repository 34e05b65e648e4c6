"""
Engine configuration with optional per-user overrides.

Defaults live on ``EngineConfig``. A ``settings.json`` file in the user's
config directory may override any of the fields; unknown keys are ignored.
"""
import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from .utils.resource_loader import get_config_dir

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for anchoring, persistence and styling."""

    # Anchoring retries while a page is still rendering
    anchor_retry_attempts: int = 5
    anchor_retry_delay_ms: int = 200

    # Namespace key uses this many leading characters of document text
    content_sample_length: int = 2000

    # Styling
    highlight_opacity: float = 0.35
    overlay_color: str = "#6366F1"
    overlay_width: float = 2.0

    # Rendering
    base_zoom: float = 1.0


def load_config(config_dir: Optional[Path] = None) -> EngineConfig:
    """
    Build the engine config, applying overrides from ``settings.json``.

    Args:
        config_dir: Directory to look in (defaults to the per-user config dir)

    Returns:
        EngineConfig with any valid overrides applied
    """
    config = EngineConfig()
    directory = config_dir if config_dir is not None else get_config_dir()
    path = Path(directory) / SETTINGS_FILENAME

    if not path.exists():
        return config

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Ignoring unreadable settings file %s: %s", path, e)
        return config

    if not isinstance(data, dict):
        logger.error("Ignoring settings file %s: expected a JSON object", path)
        return config

    known = {f.name for f in fields(EngineConfig)}
    overrides = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Unknown setting %r in %s", key, path)
            continue
        default = getattr(config, key)
        try:
            overrides[key] = type(default)(value)
        except (TypeError, ValueError):
            logger.warning("Invalid value for setting %r: %r", key, value)

    if overrides.get("anchor_retry_attempts", 1) < 1:
        logger.warning("anchor_retry_attempts must be at least 1; using default")
        overrides.pop("anchor_retry_attempts")

    return replace(config, **overrides)
