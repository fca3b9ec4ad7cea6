"""
Core contracts for the Catime configuration subsystem.

Provides the exception hierarchy and the collaborator interfaces that the
configuration package depends on.
"""

from .interfaces import IWindowHost, ISettingsManager
from .exceptions import *

__all__ = [
    'IWindowHost',
    'ISettingsManager',
    
    'CatimeException',
    'ConfigurationError',
    'ValidationError',
    'FileSystemError',
    'WatcherError',
    'ErrorCategory',
    'ErrorSeverity',
    'is_recoverable_error',
]
