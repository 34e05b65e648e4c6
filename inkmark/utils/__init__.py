"""
Utility functions and helpers.
"""
from .resource_loader import (
    get_app_data_dir,
    get_config_dir,
    ResourceManager
)

__all__ = [
    'get_app_data_dir',
    'get_config_dir',
    'ResourceManager'
]
