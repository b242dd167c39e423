"""YAML config loading with env var expansion."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml

from appseal.config.models import AppSealConfig
from appseal.exceptions import ConfigError

logger = logging.getLogger(__name__)

_ENV_RE = re.compile(r"\$\{(\w+)\}")


def config_paths(cli_path: str | Path | None = None) -> list[Path]:
    """Candidate config files in resolution order."""
    paths = [Path(cli_path)] if cli_path else []
    paths.append(Path("./appseal.yaml"))
    paths.append(Path.home() / ".appseal" / "config.yaml")
    return paths


def load_config(cli_path: str | Path | None = None) -> AppSealConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    Raises:
        ConfigError: If an explicit *cli_path* does not exist, or the first
            config file found is not valid YAML or fails validation.
    """
    if cli_path and not Path(cli_path).exists():
        raise ConfigError(f"Config file not found: {cli_path}")

    for path in config_paths(cli_path):
        if not path.exists():
            continue
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc
        if raw is None:
            continue
        logger.debug("Loaded config from %s", path)
        try:
            return AppSealConfig.from_dict(_expand_env_vars(raw), source=path)
        except ConfigError as exc:
            raise ConfigError(f"Invalid config in {path}: {exc}") from exc

    return AppSealConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return _ENV_RE.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Written by `appseal init`.
DEFAULT_CONFIG_TEMPLATE = """\
# appseal.yaml

# Archive reading
reader:
  excluded_suffixes:
    - /CodeSignature
    - /CodeResources
    - /CodeDirectory
    - /CodeRequirements-1

# Seal issuing. Key material is never stored here.
seal:
  issuer: "appseal"
  signature_algorithm: "hmac-sha256"   # hmac-sha256 | ed25519
  key_env: "APPSEAL_HMAC_KEY"          # hmac-sha256: env var holding the key
  # key_file: "~/.appseal/seal.pem"    # ed25519: PEM private key

# Catalog building
catalog:
  name: "My Catalog"
  identifier: "net.example.catalog"
  strict_metadata: false               # reject unknown metadata keys
  require_seal: false
  keep_history: false

# Release news
news:
  # title: "New Release: #(appname) #(appversion)"
  # title_update: "#(appname) #(oldappversion) -> #(appversion)"
  # caption: "#(appname) is now available"
  limit: 50
  skip_beta: false

# Worker pool size for batch verification (default: CPU count)
# workers: 4
"""
