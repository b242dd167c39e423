"""appseal configuration --- ``appseal.yaml`` loading and typed sections."""

from appseal.config.loader import DEFAULT_CONFIG_TEMPLATE, config_paths, load_config
from appseal.config.models import (
    AppSealConfig,
    CatalogConfig,
    NewsConfig,
    ReaderConfig,
    SealConfig,
)

__all__ = [
    "AppSealConfig",
    "CatalogConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "NewsConfig",
    "ReaderConfig",
    "SealConfig",
    "config_paths",
    "load_config",
]
