from datetime import datetime, timezone

import pytest

from pgm_state_gateway.core.nodes import (
    NODE_TABLE,
    STATE_FAMILY,
    LogicalNode,
    NodeBatch,
    assert_node,
    clear_node,
)

STAMP = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize("node", STATE_FAMILY)
def test_flag_nodes(node):
    on = assert_node(node, STAMP)
    off = clear_node(node, STAMP)
    assert (on.node_type, on.name, on.value) == (0, f"35.{node.value}", "true")
    assert (off.node_type, off.name, off.value) == (0, f"35.{node.value}", "false")


@pytest.mark.parametrize("node, node_type, name, cleared", [
    (LogicalNode.PROG_NAME, 3, "32", ""),
    (LogicalNode.TARGET_QUANTITY, 2, "12", "0"),
    (LogicalNode.CURRENT_QUANTITY, 2, "13", "0"),
])
def test_value_nodes(node, node_type, name, cleared):
    assert NODE_TABLE[node][:3] == (node_type, name, cleared)
    assert assert_node(node, STAMP, 42).value == "42"
    assert clear_node(node, STAMP).value == cleared


def test_value_node_requires_value():
    with pytest.raises(ValueError):
        assert_node(LogicalNode.PROG_NAME, STAMP)


def test_batch_orders_assertions_before_clears():
    batch = NodeBatch(STAMP).clear(LogicalNode.RUNNING).set(LogicalNode.ENDED)
    assert [a.value for a in batch] == ["true", "false"]
    assert len(batch) == 2
    assert "35.Ended" in repr(batch)


def test_packet_shape():
    packet = assert_node(LogicalNode.CURRENT_QUANTITY, STAMP, 7).to_packet()
    assert packet == {
        "nodeType": 2,
        "updateTime": "2024-01-02T03:04:05Z",
        "nodeName": "13",
        "nodeValue": "7",
    }
