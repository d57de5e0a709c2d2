"""
Catalog configuration loader (image storage, database, API, client).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "catalog_config.yml"


class StorageConfig(BaseModel):
    upload_dir: str = "uploads"
    pending_dir: str = "uploads_pending"
    static_prefix: str = "/uploads"
    download_media_type: str = "image/jpeg"
    reconcile_on_startup: bool = False
    remove_orphans: bool = False
    pending_grace_seconds: int = Field(default=3600, ge=0)


class DatabaseConfig(BaseModel):
    url: str = ""


class APIConfig(BaseModel):
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    level: str = "INFO"


class ClientConfig(BaseModel):
    base_url: str = "http://localhost:3000"
    cache_path: str = ".cache/products.json"
    cache_ttl_seconds: int = Field(default=300, ge=0)
    download_dir: str = "downloads"
    timeout_seconds: float = Field(default=20.0, gt=0)


class CatalogConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


def _apply_env_overrides(cfg: CatalogConfig) -> CatalogConfig:
    if os.getenv("DATABASE_URL"):
        cfg.database.url = os.environ["DATABASE_URL"]
    if os.getenv("UPLOAD_DIR"):
        cfg.storage.upload_dir = os.environ["UPLOAD_DIR"]
        # Staged uploads must sit on the same filesystem as the store.
        cfg.storage.pending_dir = cfg.storage.upload_dir.rstrip("/\\") + "_pending"
    if os.getenv("UPLOAD_PENDING_DIR"):
        cfg.storage.pending_dir = os.environ["UPLOAD_PENDING_DIR"]
    if os.getenv("LOG_LEVEL"):
        cfg.logging.level = os.environ["LOG_LEVEL"]
    return cfg


def load_catalog_config(config_path: Optional[Path] = None) -> CatalogConfig:
    """
    Load and validate the catalog configuration from a YAML file.

    Args:
        config_path: Path to config file. Defaults to $CATALOG_CONFIG, then
            config/catalog_config.yml

    Returns:
        Validated CatalogConfig with environment overrides applied

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        env_path = os.getenv("CATALOG_CONFIG")
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Catalog config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        cfg = CatalogConfig(**data)
        logger.info("Successfully loaded catalog config from %s", config_path)
    except ValidationError as e:
        logger.error("Catalog config validation failed: %s", e)
        raise

    return _apply_env_overrides(cfg)
