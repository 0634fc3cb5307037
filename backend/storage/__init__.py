"""File-based JSON storage for dialogue graphs and service settings.

Data layout:
  data/
    dialogues/           User-saved and compiled dialogue graphs
      <id>.json          One DialogueGraph per dialogue id
    config.json          Service settings (labels, pacing, cleanup)
  presets/
    dialogues/           Built-in read-only graphs (merged at read time)
    stories/             Twee sources the preset graphs were compiled from

Dialogue ids are file names: letters, digits, "_" and "-" only.

Preset merging: list_dialogues() and load_dialogue() merge preset + user
data; user data wins on id collision. Saving never writes into presets, so
saving a preset id creates a user override. Deleting the override reveals
the preset again.

Graphs are read from disk on every load_dialogue() call, which is what the
runtime's loader gets, so every dialogue start sees the current file.

Config: get_config() returns defaults merged with stored values (the
TRANSMISSION_DELAY_MODE env var changes the default pacing mode).
update_config() applies partial updates: delays merged key-by-key, scalars
overwritten. runtime_settings_from_config() builds RuntimeSettings.
"""

# Re-export all public symbols so `from backend import storage` keeps working.

from .core import (  # noqa: F401
    check_dialogue_id,
    data_dir,
    dialogues_dir,
    init_storage,
    preset_dialogues_dir,
    preset_stories_dir,
    presets_dir,
)

from .dialogues import (  # noqa: F401
    delete_dialogue,
    dialogue_source,
    list_dialogues,
    load_dialogue,
    save_dialogue,
)

from .config import (  # noqa: F401
    get_config,
    runtime_settings_from_config,
    update_config,
)
