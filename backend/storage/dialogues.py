"""Dialogue graph files (merged presets + user data).

A dialogue is read from disk on every load, so an edited file takes effect
on the next start without restarting the service.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from transmission.errors import GraphValidationError
from transmission.models import DialogueGraph
from transmission.validator import validate_graph, validate_graph_data

from .core import check_dialogue_id, dialogues_dir, preset_dialogues_dir

logger = logging.getLogger(__name__)


def _user_path(dialogue_id: str) -> Path:
    return dialogues_dir() / f"{check_dialogue_id(dialogue_id)}.json"


def _preset_path(dialogue_id: str) -> Path:
    return preset_dialogues_dir() / f"{check_dialogue_id(dialogue_id)}.json"


def _resolve(dialogue_id: str) -> tuple[Path, str] | None:
    user_path = _user_path(dialogue_id)
    if user_path.is_file():
        return user_path, "user"
    preset_path = _preset_path(dialogue_id)
    if preset_path.is_file():
        return preset_path, "preset"
    return None


def _read_graph(path: Path) -> DialogueGraph:
    try:
        return DialogueGraph.model_validate(json.loads(path.read_text()))
    except (ValueError, ValidationError) as e:
        raise GraphValidationError(f"Malformed dialogue file {path.name}: {e}") from e


def _summary(dialogue_id: str, path: Path, source: str) -> dict[str, Any]:
    summary: dict[str, Any] = {"id": dialogue_id, "source": source}
    try:
        graph = _read_graph(path)
    except GraphValidationError as e:
        logger.warning("%s", e)
        summary["error"] = str(e)
        return summary
    summary.update(
        title=graph.metadata.title,
        version=graph.metadata.version,
        startNode=graph.start_node,
        nodeCount=len(graph.nodes),
    )
    return summary


def list_dialogues() -> list[dict[str, Any]]:
    by_id: dict[str, tuple[Path, str]] = {}
    # Presets first (lower priority)
    if preset_dialogues_dir().is_dir():
        for path in sorted(preset_dialogues_dir().glob("*.json")):
            by_id[path.stem] = (path, "preset")
    # User dialogues override
    for path in sorted(dialogues_dir().glob("*.json")):
        by_id[path.stem] = (path, "user")
    return [_summary(dialogue_id, path, source) for dialogue_id, (path, source) in sorted(by_id.items())]


def dialogue_source(dialogue_id: str) -> str | None:
    """Where a dialogue comes from: "user", "preset", or None if missing."""
    found = _resolve(dialogue_id)
    return found[1] if found else None


def load_dialogue(dialogue_id: str) -> DialogueGraph | None:
    """Fresh copy of a dialogue graph, or None if it does not exist.

    Raises GraphValidationError when the file is not a readable graph.
    """
    found = _resolve(dialogue_id)
    if found is None:
        return None
    path, source = found
    logger.debug("Loading dialogue %s from %s (%s)", dialogue_id, path, source)
    return _read_graph(path)


def save_dialogue(dialogue_id: str, data: dict[str, Any] | DialogueGraph) -> DialogueGraph:
    """Validate and write a graph to the user data dir. Presets are never
    touched; saving over a preset id shadows it."""
    if isinstance(data, DialogueGraph):
        graph = data
        validate_graph(graph)
    else:
        graph = validate_graph_data(data)
    path = _user_path(dialogue_id)
    path.write_text(graph.to_json() + "\n")
    logger.info("Saved dialogue %s (%d nodes)", dialogue_id, len(graph.nodes))
    return graph


def delete_dialogue(dialogue_id: str) -> bool:
    """Delete the user copy. A preset with the same id becomes visible again."""
    path = _user_path(dialogue_id)
    if not path.is_file():
        return False
    path.unlink()
    return True
