"""Config loading."""

from pathlib import Path
from typing import Optional, Union

import yaml
from loguru import logger

from sandwich_lang.models.config import AgentConfig


def load_config(path: Optional[Union[str, Path]] = None) -> AgentConfig:
    """
    Read an AgentConfig from YAML. No path, or a missing file, gives
    the defaults.
    """
    if path is None:
        return AgentConfig()
    path = Path(path)
    if not path.exists():
        logger.warning(f"config_missing | path={path} using=defaults")
        return AgentConfig()
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return AgentConfig.model_validate(data)
