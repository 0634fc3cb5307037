"""Structural validation of a dialogue graph.

Run at compile time (optional) and always before a graph is used live.
Checks, in order, stopping at the first violation:
  1. metadata declares a start node
  2. the start node exists
  3. every choice's nextNode resolves
  4. every node-level condition's nextNode resolves
  5. every auto-advance nextNode resolves
No repair is attempted.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .errors import GraphValidationError
from .models import DialogueGraph

logger = logging.getLogger(__name__)


def validate_graph(graph: DialogueGraph) -> None:
    start = graph.start_node
    if not start:
        raise GraphValidationError("Dialogue graph does not declare a start node")
    if start not in graph.nodes:
        raise GraphValidationError(
            f"Start node '{start}' does not exist", target=start
        )

    for node_id, node in graph.nodes.items():
        for choice in node.choices:
            if choice.next_node not in graph.nodes:
                raise GraphValidationError(
                    f"Node '{node_id}' choice '{choice.id}' points to "
                    f"missing node '{choice.next_node}'",
                    node_id=node_id,
                    target=choice.next_node,
                )

    for node_id, node in graph.nodes.items():
        for condition in node.conditions or []:
            if condition.next_node not in graph.nodes:
                raise GraphValidationError(
                    f"Node '{node_id}' condition redirects to missing node "
                    f"'{condition.next_node}'",
                    node_id=node_id,
                    target=condition.next_node,
                )

    for node_id, node in graph.nodes.items():
        if node.next_node is not None and node.next_node not in graph.nodes:
            raise GraphValidationError(
                f"Node '{node_id}' advances to missing node '{node.next_node}'",
                node_id=node_id,
                target=node.next_node,
            )

    logger.debug("graph valid: %d nodes, start=%s", len(graph.nodes), start)


def validate_graph_data(data: Any) -> DialogueGraph:
    """Parse raw graph JSON and validate it. Returns the parsed graph."""
    try:
        graph = DialogueGraph.model_validate(data)
    except ValidationError as e:
        raise GraphValidationError(f"Malformed dialogue graph: {e}") from e
    validate_graph(graph)
    return graph
