"""Transmission — interactive fiction for multi-room chat.

The narrative core, independent of any web framework:

    compiler/    Twee + Harlowe-style markup → DialogueGraph
    validator    gate run before a graph is used live
    delays       pacing for the message sequence of a node
    templating   Handlebars rendering of live variables into message text
    runtime/     per-room dialogue state machine driving a graph

The chat service in `backend/` hosts the runtime and supplies the
broadcaster, the graph loader and the event-loop scheduler.
"""

from .errors import (  # noqa: F401
    CompileError,
    DialogueNotFound,
    GraphValidationError,
    TransmissionError,
)
from .models import (  # noqa: F401
    Choice,
    Condition,
    DialogueGraph,
    GraphMetadata,
    Node,
    NodeCondition,
)
