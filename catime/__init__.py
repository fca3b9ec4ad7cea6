"""
Catime configuration subsystem.

Persistent, live-reloadable, typed configuration store for the Catime
desktop timer:
- Metadata-driven INI loading and writing
- Validation and recovery of out-of-range values
- Background file watching with debounced per-area reloads
- Version checks with migration or factory reset
"""

__version__ = "1.0.3.1"
__author__ = "Catime Team"
