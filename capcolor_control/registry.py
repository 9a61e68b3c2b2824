"""
CommandRegistry - Explicit command registration pattern

Bounded Context: Command registration and validation
Responsibilities:
  - Register commands with handlers
  - Validate command existence before execution
  - Provide introspection (available_commands, get_help)

Threading: Thread-safe (uses lock for write operations)
"""

import threading
from typing import Callable, Dict, Optional, Set


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandRegistry:
    """
    Registry for control commands with explicit registration.

    Key Features:
      - Fail-fast: Invalid commands rejected immediately
      - Introspection: Can query available commands at runtime
      - Self-Documenting: Each command has description

    Example:
        registry = CommandRegistry()
        registry.register('set_mode', handler.set_mode, "Switch classification mode")

        try:
            registry.execute('set_mode', {'command': 'set_mode', 'mode': 'local'})
        except CommandNotAvailableError as e:
            print(f"Command not available: {e}")
    """

    def __init__(self):
        self._commands: Dict[str, Callable] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, command: str, handler: Callable, description: str) -> None:
        """
        Register a command with its handler function.

        Raises:
            ValueError: If command already registered
        """
        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description

    def execute(self, command: str, command_data: Optional[dict] = None) -> None:
        """
        Execute a registered command.

        Args:
            command: Command name to execute
            command_data: Optional command data (full JSON payload)

        Raises:
            CommandNotAvailableError: If command not registered
        """
        if command not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        handler = self._commands[command]

        if command_data is not None:
            handler(command_data)
        else:
            handler()

    def is_available(self, command: str) -> bool:
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of all registered command names."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Snapshot of command names mapped to descriptions."""
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._commands)
