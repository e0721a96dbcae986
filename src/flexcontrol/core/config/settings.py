# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Settings of the flex_extract installation used by flexcontrol.

Settings are loaded with the following precedence (highest to lowest):
1. Programmatic overrides
2. Environment variables (``FLEXCONTROL_<ALIAS>``)
3. Settings file (YAML)
4. Field defaults
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic import BaseModel

from flexcontrol.core.config.base import FROZEN_CONFIG
from flexcontrol.core.constants import WorkspaceLayout
from flexcontrol.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = 'FLEXCONTROL_'


class FlexExtractSettings(BaseModel):
    """Locations and defaults of the flex_extract installation"""
    model_config = FROZEN_CONFIG

    flex_extract_dir: Optional[Path] = Field(default=None, alias='FLEX_EXTRACT_DIR')
    python_executable: str = Field(default=sys.executable, alias='FLEX_PYTHON')
    calc_etadot_dir: Optional[Path] = Field(default=None, alias='CALC_ETADOT_DIR')
    default_control: str = Field(default=WorkspaceLayout.DEFAULT_CONTROL, alias='DEFAULT_CONTROL')
    ensemble_control: str = Field(default=WorkspaceLayout.ENSEMBLE_CONTROL, alias='ENSEMBLE_CONTROL')
    polytope_address: str = Field(default='polytope.ecmwf.int', alias='POLYTOPE_ADDRESS')
    extra_env: Dict[str, str] = Field(default_factory=dict, alias='EXTRA_ENV')
    log_level: str = Field(default='INFO', alias='LOG_LEVEL')

    @field_validator('extra_env', mode='before')
    @classmethod
    def parse_extra_env(cls, v):
        """Accept ``KEY=VALUE,KEY2=VALUE2`` strings as well as mappings"""
        if v is None:
            return {}
        if isinstance(v, str):
            pairs = [item.strip() for item in v.split(',') if item.strip()]
            parsed = {}
            for pair in pairs:
                if '=' not in pair:
                    raise ValueError(f"EXTRA_ENV entry '{pair}' is not of the form KEY=VALUE")
                key, value = pair.split('=', 1)
                parsed[key.strip()] = value.strip()
            return parsed
        return {str(k): str(val) for k, val in v.items()}

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unknown log level '{v}'")
        return level

    # ------------------------------------------------------------------
    # Derived installation paths
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        """The flex_extract installation root; required by every derived path."""
        if self.flex_extract_dir is None:
            raise ConfigurationError(
                "FLEX_EXTRACT_DIR is not configured; set it in the settings file "
                f"or via {ENV_PREFIX}FLEX_EXTRACT_DIR"
            )
        return Path(self.flex_extract_dir)

    @property
    def control_dir(self) -> Path:
        return self.root / 'Run' / 'Control'

    @property
    def submit_script(self) -> Path:
        return self.root / 'Source' / 'Python' / 'submit.py'

    @property
    def prepare_script(self) -> Path:
        return self.root / 'Source' / 'Python' / 'Mods' / 'prepare_flexpart.py'

    def control_template(self, name: Optional[str] = None) -> Path:
        """Path of a control template shipped with flex_extract."""
        return self.control_dir / (name or self.default_control)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None,
        *,
        use_env: bool = True,
    ) -> 'FlexExtractSettings':
        """
        Load settings from a YAML file.

        Keys may be given by alias (``FLEX_EXTRACT_DIR``) or field name
        (``flex_extract_dir``) in any case.

        Raises:
            MissingResourceError: If the file does not exist
            ConfigurationError: If the file is not valid YAML or fails validation
        """
        from flexcontrol.core.validation import validate_file_exists

        path = validate_file_exists(path, "settings file")
        try:
            with open(path, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Settings file {path} is not valid YAML: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Settings file {path} must contain a mapping")

        logger.debug(f"Loaded settings file {path}")
        return cls._build(file_config, overrides, use_env)

    @classmethod
    def from_env(cls, overrides: Optional[Dict[str, Any]] = None) -> 'FlexExtractSettings':
        """Build settings from defaults, environment variables and overrides."""
        return cls._build({}, overrides, use_env=True)

    @classmethod
    def _build(
        cls,
        base: Dict[str, Any],
        overrides: Optional[Dict[str, Any]],
        use_env: bool,
    ) -> 'FlexExtractSettings':
        config_dict = {_normalize_key(k): v for k, v in base.items()}
        if use_env:
            config_dict.update(_load_env_overrides())
        if overrides:
            config_dict.update({_normalize_key(k): v for k, v in overrides.items()})

        config_dict = {k: v for k, v in config_dict.items() if v is not None}
        try:
            settings = cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e

        if settings.model_extra:
            unknown = ', '.join(sorted(settings.model_extra))
            logger.warning(f"Ignoring unknown settings keys: {unknown}")
        return settings


def _aliases() -> Dict[str, str]:
    """Field alias -> field name for every settings field."""
    return {
        (info.alias or name): name
        for name, info in FlexExtractSettings.model_fields.items()
    }


def _normalize_key(key: str) -> str:
    """Map field names and aliases in any case onto the alias."""
    upper = str(key).upper()
    for alias, name in _aliases().items():
        if upper in (alias, name.upper()):
            return alias
    return upper


def _load_env_overrides() -> Dict[str, str]:
    overrides = {}
    for alias in _aliases():
        value = os.environ.get(f"{ENV_PREFIX}{alias}")
        if value is not None:
            overrides[alias] = value
    return overrides


def _format_validation_error(error: ValidationError) -> str:
    lines = ["Invalid flexcontrol settings:"]
    for err in error.errors():
        location = '.'.join(str(part) for part in err.get('loc', ()))
        lines.append(f"  {location}: {err.get('msg')}")
    return '\n'.join(lines)
