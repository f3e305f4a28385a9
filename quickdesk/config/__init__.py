# Configuration package for store settings

from .config_manager import ConfigManager, DeskConfig
from quickdesk.errors.exceptions import ConfigurationError

__all__ = ['ConfigManager', 'DeskConfig', 'ConfigurationError']
