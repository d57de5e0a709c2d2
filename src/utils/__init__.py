"""
Utility modules for the product catalog
"""
from .catalog_config_loader import CatalogConfig, ClientConfig, load_catalog_config

__all__ = [
    'CatalogConfig',
    'ClientConfig',
    'load_catalog_config',
]
