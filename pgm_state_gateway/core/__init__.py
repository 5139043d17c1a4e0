"""
Program State Core

Translates bending machine lifecycle events into OPC-UA node updates.

Responsibilities:
- Keep session memory (program, quantities, completion flags)
- Decide which nodes to assert and clear per event
- Schedule dispatch, delayed resume and the mode poll

NO:
- HTTP transport (see adapters)
- Settings persistence beyond opcua-settings.json
"""

from .nodes import LogicalNode, NodeAssertion, NodeBatch, NODE_TABLE, STATE_FAMILY
from .session import Job, OperatingMode, SessionMemory
from .settings import Settings, SettingsStore
from .engine import PgmStateEngine
from .scheduler import NodeScheduler

__all__ = [
    'LogicalNode',
    'NodeAssertion',
    'NodeBatch',
    'NODE_TABLE',
    'STATE_FAMILY',
    'Job',
    'OperatingMode',
    'SessionMemory',
    'Settings',
    'SettingsStore',
    'PgmStateEngine',
    'NodeScheduler'
]
