"""
Configuration system for Catime.

This package provides the configuration file pipeline with:
- A metadata table as the single source of truth for keys and defaults
- Pydantic snapshot models loaded from and written to an INI file
- Validation with silent recovery of unusable values
- Hot reloading through a debounced watchdog observer
- Version migration or factory reset on upgrade
- The plugin trust list stored alongside the settings
"""

from .schema import *
from .snapshot import ConfigSnapshot, LiveState, RecentFile, PluginTrustEntry, default_snapshot
from .applier import ReloadArea, SideEffect, SideEffectKind
from .manager import ConfigurationManager
from .validator import ConfigurationValidator
from .migration import ConfigurationMigrator, FORCE_RESET_ON_VERSION_CHANGE
from .trust import PluginTrustList
from .watcher import ConfigWatcher
from .paths import get_config_path

__all__ = [
    # Models
    'ConfigSnapshot',
    'LiveState',
    'RecentFile',
    'PluginTrustEntry',
    'default_snapshot',

    # Service and components
    'ConfigurationManager',
    'ConfigurationValidator',
    'ConfigurationMigrator',
    'ConfigWatcher',
    'PluginTrustList',
    'get_config_path',

    # Apply results
    'ReloadArea',
    'SideEffect',
    'SideEffectKind',

    # Enums and constants
    'CATIME_VERSION',
    'FORCE_RESET_ON_VERSION_CHANGE',
    'ConfigValueType',
    'TimeoutAction',
    'StartupMode',
    'TimeFormat',
    'NotificationType',
    'TextEffect',
    'AnimationSpeedMetric',
    'Language',
]
