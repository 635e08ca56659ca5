"""User configuration for the trip journal.

Settings are stored as JSON in the user's config directory and survive
application restarts. Unreadable files and invalid values are logged and
ignored so that a broken config never prevents the journal from opening.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import platformdirs

from .attributes import Color
from .constants import JournalConstants

logger = logging.getLogger(__name__)


@dataclass
class JournalConfig:
    data_dir: Optional[str] = None  # None: platform default
    accent_color: tuple = JournalConstants.LINK_ACCENT_COLOR
    pdf_font_size: int = 12
    pdf_font_name: str = "Helvetica"

    @property
    def accent(self) -> Color:
        return Color(*self.accent_color)


def config_path() -> Path:
    return Path(platformdirs.user_config_dir(JournalConstants.APP_NAME)) / "config.json"


def validate_setting(key: str, value: Any) -> bool:
    """Check one setting value; unknown keys are rejected."""
    if key == 'data_dir':
        return value is None or isinstance(value, str)
    if key == 'pdf_font_name':
        return isinstance(value, str) and bool(value)
    if key == 'pdf_font_size':
        return isinstance(value, int) and not isinstance(value, bool) and 6 <= value <= 72
    if key == 'accent_color':
        return (
            isinstance(value, (list, tuple))
            and len(value) == 3
            and all(isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in value)
        )
    return False


def load_config(path: Optional[Path] = None) -> JournalConfig:
    path = path or config_path()
    config = JournalConfig()
    if not path.exists():
        return config

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not load config from {path}: {e}")
        return config

    if not isinstance(data, dict):
        logger.warning("Config file has invalid format (not a dict), ignoring")
        return config

    known = {f.name for f in fields(JournalConfig)}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key {key!r}")
            continue
        if not validate_setting(key, value):
            logger.warning(f"Ignoring invalid value for {key!r}: {value!r}")
            continue
        if key == 'accent_color':
            value = tuple(value)
        setattr(config, key, value)
    return config


def save_config(config: JournalConfig, path: Optional[Path] = None) -> bool:
    """Write the config atomically. Returns False if it could not be saved."""
    path = path or config_path()
    temp_file = path.with_suffix(JournalConstants.ATOMIC_SAVE_SUFFIX)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = asdict(config)
        data['accent_color'] = list(config.accent_color)
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        temp_file.replace(path)
        return True
    except OSError as e:
        logger.warning(f"Could not save config to {path}: {e}")
        try:
            if temp_file.exists():
                temp_file.unlink()
        except OSError:
            pass
        return False
