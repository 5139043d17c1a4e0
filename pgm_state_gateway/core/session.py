"""
Session Memory and machine context types.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict


class OperatingMode(str, Enum):
    """Bending machine operating modes as reported by the host."""
    PROGRAM = "Program"
    SEMI_AUTO = "SemiAuto"
    AUTO = "Auto"
    MANUAL = "Manual"
    SETUP = "Setup"
    UNKNOWN = "Unknown"

    @property
    def is_production(self) -> bool:
        return self in (OperatingMode.SEMI_AUTO, OperatingMode.AUTO)


@dataclass(frozen=True)
class Job:
    """Read-only view of the active work order."""
    qty_needed: int


@dataclass
class SessionMemory:
    """
    What the engine remembers between lifecycle events.

    Created once with empty defaults and lives for the process lifetime.
    Mutated only by the state engine.
    """
    program_name: str = ""
    target_quantity: int = 0
    current_quantity: int = 0
    program_completed: bool = False
    over_produce: bool = False
    last_mode: OperatingMode = OperatingMode.PROGRAM

    def snapshot(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_mode"] = self.last_mode.value
        return data
