import json
import tomllib
from pathlib import Path
from typing import Any

import yaml

from arbledger.core.errors import ConfigParseError


def read_structured(path) -> Any:
    """
    Reads a JSON, TOML or YAML document, chosen by file extension.
    Unknown extensions are read as YAML.
    """
    path = Path(path)
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Cannot read {path}: {e}") from e

    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(contents)
        if suffix == ".toml":
            return tomllib.loads(contents)
        return yaml.safe_load(contents)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(f"Cannot parse {path}: {e}") from e
