"""Tests for dialogue graph validation."""

import pytest

from transmission.errors import GraphValidationError
from transmission.models import DialogueGraph
from transmission.validator import validate_graph, validate_graph_data


def _graph(**nodes):
    return DialogueGraph.model_validate({
        "metadata": {"startNode": "a"},
        "nodes": {nid: {"id": nid, **node} for nid, node in nodes.items()},
    })


def test_valid_graph():
    validate_graph(_graph(
        a={"choices": [{"id": "c", "displayText": "Go", "nextNode": "b"}]},
        b={"type": "ending"},
    ))


def test_missing_start_node():
    with pytest.raises(GraphValidationError, match="Start node 'a'"):
        validate_graph(_graph(b={}))


def test_undeclared_start_node():
    with pytest.raises(GraphValidationError, match="start node"):
        validate_graph(DialogueGraph())


@pytest.mark.parametrize("node", [
    {"choices": [{"id": "c", "displayText": "Go", "nextNode": "gone"}]},
    {"conditions": [{"variable": "x", "operator": ">", "value": 1, "nextNode": "gone"}]},
    {"nextNode": "gone"},
])
def test_dangling_references(node):
    with pytest.raises(GraphValidationError) as exc:
        validate_graph(_graph(a=node))
    assert exc.value.node_id == "a"
    assert exc.value.target == "gone"


def test_malformed_graph_data():
    with pytest.raises(GraphValidationError, match="Malformed"):
        validate_graph_data({"nodes": {"a": {"type": "narrative"}}})
