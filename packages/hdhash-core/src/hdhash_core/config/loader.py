"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import HdHashConfig

CONFIG_ENV_VAR = "HDHASH_CONFIG"


def load_config(cli_path: str | None = None) -> HdHashConfig:
    """Load config with resolution order: CLI > $HDHASH_CONFIG > project-local > user-global > defaults."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path(env_path) if env_path else None,
        Path("./hdhash.yaml"),
        Path.home() / ".hdhash" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ValueError(f"Config in {path} must be a mapping, got {type(raw).__name__}")
                raw = _expand_env_vars(raw)
                return HdHashConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return HdHashConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `hdhash config init`
DEFAULT_CONFIG_TEMPLATE = """\
# hdhash.yaml

# Content-defined chunking
chunking:
  window_size: 32              # rolling checksum window, in bytes
  zero_bits: 10                # border when the low N fingerprint bits are zero (0-32)

# Directory scanning
scan:
  ignore_patterns: [".git", "__pycache__", ".venv", ".tox", ".DS_Store"]
  follow_symlinks: false
  read_size: 65536             # bytes per read, a multiple of 4096

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
