"""Exception types shared by the compiler, validator and runtime."""

from __future__ import annotations


class TransmissionError(Exception):
    """Base class for all narrative-core errors."""


class CompileError(TransmissionError):
    """Raised when markup cannot be turned into a dialogue graph."""


class GraphValidationError(TransmissionError):
    """Raised when a dialogue graph fails structural validation.

    `node_id` and `target` name the offending node and the unresolved id
    when the failure is about a dangling reference.
    """

    def __init__(
        self, message: str, *, node_id: str | None = None, target: str | None = None
    ) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.target = target


class DialogueNotFound(TransmissionError):
    """Raised when no graph file exists for a dialogue id."""
