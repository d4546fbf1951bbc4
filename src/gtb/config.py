# config.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .model import ToolSpec

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or is invalid."""
    pass


# -------------------- Schemas --------------------

class ToolConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cmd: Optional[str] = None
    clone: Optional[bool] = None
    build: Optional[List[str]] = None


class FileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tools: Optional[Dict[str, Optional[ToolConfig]]] = None


# -------------------- Loading --------------------

def parse_config(data: object) -> Dict[str, ToolSpec]:
    """
    Turn an already deserialized configuration document into tool specs.

    Empty entries (`example.org/cmd:` with no body) get all defaults.
    """
    if data is None:
        data = {}
    try:
        cfg = FileConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    tools: Dict[str, ToolSpec] = {}
    for identity, entry in (cfg.tools or {}).items():
        entry = entry or ToolConfig()
        tools[identity] = ToolSpec(
            identity=identity,
            cmd=entry.cmd or None,
            clone=bool(entry.clone),
            build=tuple(entry.build or ()),
        )
    return tools


def load_config(path: str | Path) -> Dict[str, ToolSpec]:
    """
    Load the YAML configuration file.

    Raises:
      ConfigError: if the file is missing, unreadable, or does not match the schema.
    """
    cfg_path = Path(path).expanduser()
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"reading configuration file {cfg_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing configuration file {cfg_path}: {e}") from e

    tools = parse_config(data)
    logger.debug("loaded %d tool(s) from %s", len(tools), cfg_path)
    return tools


# -------------------- Selection --------------------

def select_tools(tools: Dict[str, ToolSpec], wanted: Iterable[str]) -> Dict[str, ToolSpec]:
    """Return a new mapping restricted to `wanted`; everything when `wanted` is empty."""
    want = set(wanted)
    if not want:
        return dict(tools)
    return {name: spec for name, spec in tools.items() if name in want}


def unknown_tools(tools: Dict[str, ToolSpec], wanted: Iterable[str]) -> List[str]:
    return sorted(set(wanted) - set(tools))


def check_artifact_names(tools: Dict[str, ToolSpec]) -> None:
    """
    Reject tool sets where two tools would write the same output file.

    Raises:
      ConfigError: naming every clashing artifact and the tools behind it.
    """
    owners: Dict[str, List[str]] = {}
    for name, spec in tools.items():
        owners.setdefault(spec.artifact_name, []).append(name)

    dupes = {artifact: sorted(names) for artifact, names in owners.items() if len(names) > 1}
    if dupes:
        desc = "; ".join(f"{a}: {', '.join(n)}" for a, n in sorted(dupes.items()))
        raise ConfigError(f"duplicate artifact names: {desc}")
