"""
Capcolor CLI - Command-line interface for the zone color monitor.

Sends MQTT control commands without hand-writing JSON.

Usage:
    capcolor-cli set-mode local
    capcolor-cli list-zones
    capcolor-cli status
"""

__version__ = "1.0.0"
