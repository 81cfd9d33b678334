"""Settings for the logshot command line tool."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class Settings(BaseModel):
    serial: Optional[str] = None
    adb_path: str = "adb"
    tag: str = "screenshot_request"
    log_buffer: str = "main"
    min_priority: str = "D"
    quiet_period: float = Field(default=0.5, ge=0)
    output_dir: Optional[str] = "screenshots"
    image_format: str = "png"
    scale: float = Field(default=1.0, gt=0)
    gif_path: Optional[str] = None
    gif_duration_ms: int = Field(default=500, gt=0)
    upload_url: Optional[str] = None
    upload_timeout: float = Field(default=30, gt=0)
    debug: bool = False


def _environment_defaults() -> Dict[str, Any]:
    defaults = {}
    if os.environ.get("ANDROID_SERIAL"):
        defaults["serial"] = os.environ["ANDROID_SERIAL"]
    if os.environ.get("ADB"):
        defaults["adb_path"] = os.environ["ADB"]
    return defaults


def load_settings(path: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build settings from, in increasing priority: defaults, the environment
    (``ANDROID_SERIAL``, ``ADB``), an optional YAML file, and ``overrides``
    whose value is not None.
    """
    values = _environment_defaults()

    if path is not None:
        config_path = Path(path).expanduser()
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ValueError(f"File not found: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}")
        if not isinstance(loaded, dict):
            raise ValueError(f"Expected a mapping in {config_path}, got {type(loaded).__name__}")
        values.update(loaded)

    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ValueError(f"Invalid settings: {e}")
