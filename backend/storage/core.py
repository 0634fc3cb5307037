"""Storage initialization and path helpers."""

import re
from pathlib import Path

_data_dir: Path | None = None
_presets_dir: Path | None = None

_DIALOGUE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def init_storage(data_dir: Path, presets_dir: Path | None = None) -> None:
    global _data_dir, _presets_dir

    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    dialogues_dir().mkdir(exist_ok=True)
    if presets_dir is None:
        # Default: repo_root/presets
        presets_dir = Path(__file__).parent.parent.parent / "presets"
    _presets_dir = presets_dir


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def presets_dir() -> Path:
    assert _presets_dir is not None, "Call init_storage() before using storage"
    return _presets_dir


def dialogues_dir() -> Path:
    return data_dir() / "dialogues"


def preset_dialogues_dir() -> Path:
    return presets_dir() / "dialogues"


def preset_stories_dir() -> Path:
    return presets_dir() / "stories"


def check_dialogue_id(dialogue_id: str) -> str:
    """Dialogue ids name files, so only [A-Za-z0-9_-] is allowed.

    "episode1" → "episode1"; "../etc" → ValueError
    """
    if not _DIALOGUE_ID.match(dialogue_id):
        raise ValueError(f"Invalid dialogue id '{dialogue_id}'")
    return dialogue_id
