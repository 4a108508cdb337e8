from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from .common import CamelModel, Confidence


class SectionTypeEnum(str, Enum):
    goal = "goal"
    active_treatment = "active_treatment"
    individual_response = "individual_response"
    scores_comments = "scores_comments"
    description = "description"
    unknown = "unknown"


class OcrPage(CamelModel):
    """What the OCR engine hands over for one scanned page."""
    text: str = ""
    confidence: Confidence = 0.0
    words: List[Dict[str, Any]] = []
    lines: List[Dict[str, Any]] = []


class FormSection(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: SectionTypeEnum
    content: str = ""
    label: Optional[str] = None
    start_line: int = 0


class TaskDraft(CamelModel):
    """Fold state for one task while sections are scanned. Never mutated; copy with model_copy."""
    model_config = ConfigDict(frozen=True)

    goal: Optional[str] = None
    active_treatment: Optional[str] = None
    individual_response: Optional[str] = None
    scores_comments: Optional[str] = None
    type: str = "goal"


class FinalizedTask(CamelModel):
    model_config = ConfigDict(frozen=True)

    description: str = Field(min_length=1)
    active_treatment: Optional[str] = None
    individual_response: Optional[str] = None
    scores_comments: Optional[str] = None
    confidence: Confidence = Field(ge=0, le=100)
    source: str = "ocr"
    type: str = "goal"

    def structured_data(self) -> Dict[str, str]:
        """Row shape stored next to the task by the persistence layer."""
        return {
            "goal": self.description,
            "activeTreatment": self.active_treatment or "",
            "individualResponse": self.individual_response or "",
            "scoresComments": self.scores_comments or "",
            "type": self.type,
        }


class ParseResult(CamelModel):
    tasks: List[FinalizedTask] = []
    form_sections: List[FormSection] = []
    warnings: List[str] = []
    extracted_text: str = ""
    confidence: Confidence = 0.0
    discarded_drafts: int = 0

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
