"""Dialogue graph CRUD and compile endpoints."""

from fastapi import APIRouter, HTTPException

from backend import storage
from transmission.compiler import NARRATOR_NAME, compile_story
from transmission.errors import GraphValidationError
from transmission.validator import validate_graph

from .models import CompileBody

router = APIRouter()


@router.get("/dialogues")
async def list_dialogues():
    """List all dialogues (presets merged with user data)."""
    return storage.list_dialogues()


@router.get("/dialogues/{dialogue_id}")
async def get_dialogue(dialogue_id: str):
    """Get a dialogue graph as stored."""
    try:
        graph = storage.load_dialogue(dialogue_id)
    except (ValueError, GraphValidationError) as e:
        raise HTTPException(400, str(e))
    if graph is None:
        raise HTTPException(404, "Dialogue not found")
    return graph.to_json_dict()


@router.put("/dialogues/{dialogue_id}")
async def put_dialogue(dialogue_id: str, body: dict):
    """Validate and save a dialogue graph."""
    try:
        graph = storage.save_dialogue(dialogue_id, body)
    except (ValueError, GraphValidationError) as e:
        raise HTTPException(400, str(e))
    return graph.to_json_dict()


@router.delete("/dialogues/{dialogue_id}")
async def delete_dialogue(dialogue_id: str):
    """Delete a user dialogue. Presets cannot be deleted."""
    try:
        source = storage.dialogue_source(dialogue_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if source is None:
        raise HTTPException(404, "Dialogue not found")
    if source == "preset":
        raise HTTPException(400, "Preset dialogues cannot be deleted")
    storage.delete_dialogue(dialogue_id)
    return {"ok": True}


@router.post("/dialogues/{dialogue_id}/compile")
async def compile_dialogue(dialogue_id: str, body: CompileBody):
    """Compile Twee source, validate the graph and save it under dialogue_id."""
    result = compile_story(body.source, narrator_name=body.narrator_name or NARRATOR_NAME)
    try:
        validate_graph(result.graph)
        if body.save:
            storage.save_dialogue(dialogue_id, result.graph)
    except (ValueError, GraphValidationError) as e:
        raise HTTPException(400, str(e))
    return {
        "id": dialogue_id,
        "saved": body.save,
        "passageCount": result.passage_count,
        "nodeCount": result.node_count,
        "startNode": result.graph.start_node,
        "variables": result.variables,
        "warnings": result.warnings,
    }
