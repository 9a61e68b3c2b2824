"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() for JSON export
- Validation: Constructor validates invariants

Types:
- ZoneRect: Zone geometry in frame percentages
- Timestamp: ISO 8601 timestamp wrapper
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict


@dataclass(frozen=True)
class ZoneRect:
    """
    Immutable zone rectangle, in percentages of the frame.

    Attributes:
        x: Left edge (percent of width)
        y: Top edge (percent of height)
        width: Width (percent of width)
        height: Height (percent of height)

    Example:
        >>> ZoneRect(x=5, y=5, width=43, height=43).to_dict()
        {'x': 5, 'y': 5, 'width': 43, 'height': 43}
    """
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Validate invariants."""
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"ZoneRect {name} must be in [0, 100], got {value}")

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> 'ZoneRect':
        """
        Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                x=float(data['x']),
                y=float(data['y']),
                width=float(data['width']),
                height=float(data['height'])
            )
        except KeyError as e:
            raise ValueError(f"Missing required ZoneRect field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ZoneRect data: {e}")


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Example:
        >>> ts = Timestamp.now()
        >>> ts.value
        '2025-10-24T15:30:45.123456+00:00'
    """
    value: str

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current time (UTC)."""
        return cls(value=datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> str:
        """Serialize to JSON (as string)."""
        return self.value
