"""
Collaborator interfaces for the Catime configuration subsystem.

This module defines the contracts between the configuration service and
the parts of the application it talks to but does not own: the clock
window that receives side effects, and the settings manager surface the
rest of the application reads through.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple


class IWindowHost(ABC):
    """
    Interface for the window that configuration side effects act upon.
    
    Implementations run on the UI thread; the configuration service only
    calls them from there.
    """
    
    @abstractmethod
    def get_window_position(self) -> Optional[Tuple[int, int]]:
        """Return the live top-left position, or None when no window exists."""
        pass
    
    @abstractmethod
    def move_window(self, x: int, y: int) -> None:
        pass
    
    @abstractmethod
    def set_alpha(self, alpha: int) -> None:
        """Apply layered-window alpha in the range 0-255."""
        pass
    
    @abstractmethod
    def set_topmost(self, topmost: bool) -> None:
        pass
    
    @abstractmethod
    def relabel(self, language: str) -> None:
        """Reload every translated string for the given language."""
        pass
    
    @abstractmethod
    def reload_animation_speed(self) -> None:
        pass

    @abstractmethod
    def load_animation(self, path: str) -> None:
        """Switch the tray animation to a folder, file or builtin name."""
        pass

    @abstractmethod
    def register_hotkeys(self, hotkeys: Dict[str, int]) -> None:
        """Re-register global hotkeys, keyed by configuration key."""
        pass
    
    @abstractmethod
    def redraw(self) -> None:
        pass


class ISettingsManager(ABC):
    """
    Interface for configuration and settings management.
    
    Provides abstraction for configuration storage, validation,
    and change notification.
    """
    
    @abstractmethod
    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        pass
    
    @abstractmethod
    def set(self, section: str, key: str, value: Any) -> None:
        """Set configuration value and persist it."""
        pass
    
    @abstractmethod
    def validate_config(self) -> List[str]:
        """
        Validate current configuration.
        
        Returns:
            List of corrections the validator would apply (empty if valid)
        """
        pass
    
    @abstractmethod
    def register_change_callback(
        self,
        area: str,
        callback: Callable[[str], None]
    ) -> None:
        """Register callback for reloads of one area."""
        pass
