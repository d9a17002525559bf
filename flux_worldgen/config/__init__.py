"""
Configuration for world generation and the runtime environment.
"""

from .config import Settings, settings
from .logging_setup import configure_logging
from .world_config import WorldGenerationConfig

__all__ = ["Settings", "settings", "configure_logging", "WorldGenerationConfig"]
