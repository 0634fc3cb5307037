"""Narrative compiler: Twee 3 source with Harlowe-style macros → DialogueGraph.

Stages, each in its own module:

    passages   split source into passages, read StoryTitle/StoryData,
               collect init passages (StoryInit / `startup` tag)
    choices    per-passage extraction of redirects and choices, in order:
               conditional redirect, (link:) macros, if/else link blocks,
               plain [[links]]; the first strategy that yields choices wins
    messages   line classification of the remaining text into a message
               sequence (image, pause, narrator, speaker, player, stage)
    markup     emphasis → HTML for content, stripped for button text
    core       node assembly and the compile_story() entry point

    result = compile_story(Path("story.twee").read_text())
    result.graph.to_json()
"""

from .choices import Extraction, FoundChoice, extract_choices  # noqa: F401
from .core import NARRATOR_NAME, CompileResult, compile_passage, compile_story, node_id  # noqa: F401
from .passages import Passage, StorySource, parse_story  # noqa: F401
