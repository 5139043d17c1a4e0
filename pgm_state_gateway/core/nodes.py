"""
Node Table for the OPC-UA REST Gateway

Every logical node the gateway knows about has a fixed identity
(node type, node name) and a fixed "empty" value used when clearing it.

CRITICAL RULES:
- Identities are static; nothing here is computed at runtime
- Boolean nodes are presence flags: "true" when asserted, "false" when cleared
- Value nodes carry their payload as a string
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple, Optional


class LogicalNode(str, Enum):
    """Logical nodes published to the gateway."""
    # Program state family (mutually exclusive)
    RUNNING = "Running"
    ENDED = "Ended"
    STOPPED = "Stopped"
    STOPPED_MALFUNCTION = "StoppedMalfunction"
    STOPPED_OPERATOR = "StoppedOperator"
    ABORTED = "Aborted"

    # Value nodes
    PROG_NAME = "ProgName"
    TARGET_QUANTITY = "TargetQuantity"
    CURRENT_QUANTITY = "CurrentQuantity"


class NodeIdentity(NamedTuple):
    node_type: int
    name: str
    cleared_value: str
    is_flag: bool


def _flag(node: LogicalNode) -> NodeIdentity:
    return NodeIdentity(0, f"35.{node.value}", "false", True)


NODE_TABLE: Dict[LogicalNode, NodeIdentity] = {
    LogicalNode.RUNNING: _flag(LogicalNode.RUNNING),
    LogicalNode.ENDED: _flag(LogicalNode.ENDED),
    LogicalNode.STOPPED: _flag(LogicalNode.STOPPED),
    LogicalNode.STOPPED_MALFUNCTION: _flag(LogicalNode.STOPPED_MALFUNCTION),
    LogicalNode.STOPPED_OPERATOR: _flag(LogicalNode.STOPPED_OPERATOR),
    LogicalNode.ABORTED: _flag(LogicalNode.ABORTED),
    LogicalNode.PROG_NAME: NodeIdentity(3, "32", "", False),
    LogicalNode.TARGET_QUANTITY: NodeIdentity(2, "12", "0", False),
    LogicalNode.CURRENT_QUANTITY: NodeIdentity(2, "13", "0", False),
}

# Members of the program state family. Exactly one is "true" at a time.
STATE_FAMILY = (
    LogicalNode.RUNNING,
    LogicalNode.ENDED,
    LogicalNode.STOPPED,
    LogicalNode.STOPPED_MALFUNCTION,
    LogicalNode.STOPPED_OPERATOR,
    LogicalNode.ABORTED,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NodeAssertion:
    """
    A single value update for one gateway node.
    """
    node_type: int
    name: str
    value: str
    timestamp: datetime

    def to_packet(self) -> Dict[str, object]:
        """
        Wire packet for PUT /api/OpcUaNode/UpdateNodeValue.
        """
        return {
            "nodeType": self.node_type,
            "updateTime": self.timestamp.isoformat().replace("+00:00", "Z"),
            "nodeName": self.name,
            "nodeValue": self.value,
        }


def assert_node(node: LogicalNode, timestamp: datetime, value: Optional[object] = None) -> NodeAssertion:
    """
    Build the "asserted" update for a node.

    Args:
        node: Logical node to assert
        timestamp: Update time shared by the batch
        value: Payload for value nodes (ignored for flags)

    Raises:
        ValueError: if a value node is asserted without a value
    """
    identity = NODE_TABLE[node]
    if identity.is_flag:
        text = "true"
    elif value is None:
        raise ValueError(f"Node {node.value} requires a value")
    else:
        text = str(value)
    return NodeAssertion(identity.node_type, identity.name, text, timestamp)


def clear_node(node: LogicalNode, timestamp: datetime) -> NodeAssertion:
    """Build the "cleared" update for a node."""
    identity = NODE_TABLE[node]
    return NodeAssertion(identity.node_type, identity.name, identity.cleared_value, timestamp)


@dataclass
class NodeBatch:
    """
    Ordered set of node updates produced by one engine decision.

    Assertions are always issued before clears.
    """
    timestamp: datetime
    asserted: List[NodeAssertion] = field(default_factory=list)
    cleared: List[NodeAssertion] = field(default_factory=list)

    def set(self, node: LogicalNode, value: Optional[object] = None) -> "NodeBatch":
        self.asserted.append(assert_node(node, self.timestamp, value))
        return self

    def clear(self, *nodes: LogicalNode) -> "NodeBatch":
        for node in nodes:
            self.cleared.append(clear_node(node, self.timestamp))
        return self

    def __iter__(self) -> Iterator[NodeAssertion]:
        yield from self.asserted
        yield from self.cleared

    def __len__(self) -> int:
        return len(self.asserted) + len(self.cleared)

    def __repr__(self) -> str:
        on = ",".join(a.name for a in self.asserted)
        off = ",".join(c.name for c in self.cleared)
        return f"NodeBatch(set=[{on}], clear=[{off}])"
