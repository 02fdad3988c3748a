"""Value types shared by the correction engine and the editor coordinator."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

CANDIDATE_COUNT = 3


@dataclass(frozen=True)
class CorrectionCandidate:
    """One proposed rendering of the user's text.

    Candidates come in ranked sets of three: the literal correction, the
    grammar-refined phrasing, then the alternative interpretation.
    """

    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class CorrectionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class EditorState:
    """Immutable snapshot of everything a UI needs to render the editor."""

    text: str = ""
    correction_state: CorrectionState = CorrectionState.IDLE
    candidates: Tuple[CorrectionCandidate, ...] = ()
    modal_visible: bool = False
    confirming_clear: bool = False
    last_error: Optional[str] = None
    is_speaking: bool = False

    @property
    def is_checking(self) -> bool:
        return self.correction_state is CorrectionState.PENDING

    @property
    def is_text_empty(self) -> bool:
        return not self.text.strip()
