from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class InternalInconsistencyError(RuntimeError):
    """
    Raised when the diff engine reaches a state that well-formed input can never produce.
    This is a programming defect, not a user error, and is never caught by the engine itself.
    """


class EditCommand(str, Enum):
    INSERT = "Insert"
    DELETE = "Delete"
    REPLACE = "Replace"
    IGNORE = "Ignore"
    # Origin of the alignment table. Never part of a returned script.
    END = "End"


class Edit(BaseModel):
    """
    A single step of a word-level edit script.

    Ignore, Delete and Replace each consume one source token in order.
    Insert consumes none. The source word is never stored here; the renderer
    recovers it positionally.
    """

    cmd: EditCommand = Field(..., description="Ignore, Insert, Delete or Replace.")
    word: Optional[str] = Field(
        None,
        description="The target word for Insert and Replace. Empty for Ignore and Delete.",
    )

    def __repr__(self) -> str:
        if self.word is None:
            return f"{self.cmd.value}"
        return f"{self.cmd.value}({self.word!r})"

    __str__ = __repr__

    @property
    def consumes_source(self) -> bool:
        return self.cmd != EditCommand.INSERT


class RenderOptions(BaseModel):
    """Knobs for the markup renderer. The defaults reproduce the historical output exactly."""

    close_trailing_runs: bool = Field(
        False,
        description=(
            "If True, a script ending inside a deletion run gets a final '~~' and one ending "
            "inside an insertion run gets a final backtick. If False, open runs are left open."
        ),
    )
