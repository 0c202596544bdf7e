"""Optional JSON configuration (``p2t.json``) for the TypeScript output."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "p2t.json"


class ConfigError(Exception):
    """Raised when a configuration file is missing or malformed."""


@dataclass
class P2tConfig:
    # Lines written verbatim (with a trailing ";") before the generated imports
    imports: List[str] = field(default_factory=list)
    # Wraps rpc return types; "{}" marks the type, e.g. "Observable<{}>"
    rpc_return_wrapper: Optional[str] = None

    def wrap_return(self, type_name: str) -> str:
        if self.rpc_return_wrapper:
            return self.rpc_return_wrapper.replace("{}", type_name)
        return type_name


def load_config(config_path: Optional[str] = None, working_dir: Optional[str] = None) -> P2tConfig:
    """Load a config file.

    Without an explicit path, ``p2t.json`` in ``working_dir`` (default CWD)
    is used if it exists, otherwise defaults apply.
    """
    if config_path is None:
        default_path = Path(working_dir or Path.cwd()) / DEFAULT_CONFIG_NAME
        if not default_path.is_file():
            return P2tConfig()
        path = default_path
    else:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Config file '{config_path}' does not exist")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file '{path}' is not valid JSON: {e}") from e

    logger.debug("Loaded config from %s", path)
    return _from_dict(data, path)


def _from_dict(data: object, path: Path) -> P2tConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a JSON object")

    imports = data.get("imports", [])
    if not isinstance(imports, list) or not all(isinstance(i, str) for i in imports):
        raise ConfigError(f"'imports' in '{path}' must be a list of strings")

    wrapper = data.get("rpc_return_wrapper")
    if wrapper is not None and (not isinstance(wrapper, str) or "{}" not in wrapper):
        raise ConfigError(f"'rpc_return_wrapper' in '{path}' must be a string containing '{{}}'")

    return P2tConfig(imports=imports, rpc_return_wrapper=wrapper)
