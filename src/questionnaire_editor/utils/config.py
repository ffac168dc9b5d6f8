"""
Editor settings.

Defaults live on ``EditorSettings``; a JSON file can override any of them:

    {"history_limit": 100, "indent": "  ", "validation_level": "NORMAL"}

By default the file is ``editor_settings.json`` in the current directory. A
missing file gives the defaults silently; an unreadable or invalid one gives
the defaults with a logged warning.
"""

import json
from logging import getLogger
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from questionnaire_editor.utils.validation import ValidationLevel

logger = getLogger(__name__)

DEFAULT_SETTINGS_FILE = "editor_settings.json"


class EditorSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    history_limit: int = Field(default=50, ge=1)
    synthetic_id_prefix: str = "node_"
    indent: str = "    "
    validation_level: ValidationLevel = ValidationLevel.LENIENT
    clipboard_path: Optional[Path] = None

    @field_validator("validation_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("indent")
    @classmethod
    def _whitespace_indent(cls, value: str) -> str:
        if value.strip():
            raise ValueError("indent must only contain whitespace")
        return value


def load_settings(path: Optional[Union[str, Path]] = None) -> EditorSettings:
    """Load settings from a JSON file, falling back to the defaults.

    Args:
        path: Settings file; ``editor_settings.json`` when omitted

    Returns:
        The loaded settings, or the defaults if the file is missing or invalid
    """
    path = Path(path) if path is not None else Path(DEFAULT_SETTINGS_FILE)
    if not path.exists():
        logger.debug(f"No settings file at {path}, using defaults")
        return EditorSettings()

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return EditorSettings.model_validate(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring settings file {path}: {e}")
        return EditorSettings()
