"""
Exception hierarchy for the Catime configuration subsystem.

This module defines a structured exception hierarchy that provides:
- Clear error categorization and classification
- Rich error context and metadata
- Error recovery guidance and suggestions
- Structured logging integration

Most of the configuration pipeline degrades instead of raising. These
exceptions mark programmer errors and the few strict operations that
callers explicitly opt into.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum


class ErrorSeverity(Enum):
    """Enumeration of error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Enumeration of error categories."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    FILESYSTEM = "filesystem"
    WATCHER = "watcher"


class CatimeException(Exception):
    """
    Base exception class for all Catime exceptions.
    
    Provides rich error context, categorization, and recovery guidance.
    """
    
    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.CONFIGURATION,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        recoverable: bool = True,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.suggestions = suggestions or []
        self.recoverable = recoverable
        self.cause = cause
        self.timestamp = datetime.now()
        
        if cause:
            self.__cause__ = cause
    
    def _generate_error_code(self) -> str:
        """Generate an error code from exception type and category."""
        category_code = self.category.value.upper()[:3]
        return f"{category_code}_{self.__class__.__name__.upper()}"
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': self.context,
            'suggestions': self.suggestions,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp.isoformat(),
            'exception_type': self.__class__.__name__,
            'cause': str(self.cause) if self.cause else None
        }
    
    def add_context(self, key: str, value: Any) -> 'CatimeException':
        self.context[key] = value
        return self
    
    def add_suggestion(self, suggestion: str) -> 'CatimeException':
        if suggestion not in self.suggestions:
            self.suggestions.append(suggestion)
        return self
    
    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")
        
        if self.suggestions:
            parts.append(f"Suggestions: {'; '.join(self.suggestions)}")
        
        return " | ".join(parts)


class ConfigurationError(CatimeException):
    """
    Raised for configuration lookups that cannot be satisfied.
    
    Typically an unknown section/key pair or an unknown reload area.
    """
    
    def __init__(
        self,
        message: str,
        section: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        
        if section:
            self.add_context('section', section)
        if config_key:
            self.add_context('config_key', config_key)
        
        self.add_suggestion("Check the section and key against the metadata table")


class ValidationError(CatimeException):
    """Raised when a value cannot be coerced into its declared type."""
    
    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        
        if field_name:
            self.add_context('field_name', field_name)
        if field_value is not None:
            self.add_context('field_value', field_value)


class FileSystemError(CatimeException):
    """
    Raised for file system errors in strict store operations.
    
    This includes permission issues and disk space problems.
    """
    
    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, category=ErrorCategory.FILESYSTEM, **kwargs)
        
        if file_path:
            self.add_context('file_path', file_path)
        if operation:
            self.add_context('operation', operation)
        
        self.add_suggestion("Check file permissions and accessibility")
        self.add_suggestion("Verify disk space and file system integrity")


class WatcherError(CatimeException):
    """Raised when the configuration watcher cannot be started."""
    
    def __init__(self, message: str, directory: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.WATCHER, **kwargs)
        
        if directory:
            self.add_context('directory', directory)


def is_recoverable_error(exception: Exception) -> bool:
    """
    Check if an error is recoverable.
    
    Returns True if the error can potentially be recovered from
    through retry or user action.
    """
    if isinstance(exception, CatimeException):
        return exception.recoverable
    
    return isinstance(exception, (FileNotFoundError, PermissionError, TimeoutError))
