# backend/app/services/structurer.py
from __future__ import annotations

import logging
import math
from functools import partial, reduce
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from ..exceptions import TaskFinalizationError
from ..schemas.isp import (
    FinalizedTask,
    FormSection,
    OcrPage,
    ParseResult,
    SectionTypeEnum,
    TaskDraft,
)
from .rules import RuleSet, get_rule_set, looks_like_task_description
from .sections import identify_form_sections

logger = logging.getLogger("swiftnotes")

NO_TEXT_WARNING = "No text was extracted from the image"
NO_TASKS_WARNINGS = (
    "No ISP tasks were identified in the extracted text",
    "Please review the extracted text and manually add tasks",
)
LOW_CONFIDENCE_WARNING = "OCR confidence is below 80%. Please review and edit the extracted tasks"


# --- finalizer -------------------------------------------------------------

def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def finalize_task(draft: TaskDraft, confidence: float) -> FinalizedTask:
    """
    Turn a draft into the record handed to persistence / note generation.
    The draft must carry goal text; callers filter goal-less drafts first.
    """
    description = (draft.goal or "").strip()
    if not description:
        raise TaskFinalizationError("cannot finalize a task draft without goal text")
    return FinalizedTask(
        description=description,
        active_treatment=_optional(draft.active_treatment),
        individual_response=_optional(draft.individual_response),
        scores_comments=_optional(draft.scores_comments),
        confidence=confidence,
        type=draft.type or "goal",
    )


# --- fold over sections ----------------------------------------------------

class _FoldState(NamedTuple):
    draft: Optional[TaskDraft]
    tasks: Tuple[FinalizedTask, ...]
    discarded: int


_EMPTY = _FoldState(draft=None, tasks=(), discarded=0)

_BODY_FIELDS: Dict[SectionTypeEnum, str] = {
    SectionTypeEnum.active_treatment: "active_treatment",
    SectionTypeEnum.individual_response: "individual_response",
    SectionTypeEnum.scores_comments: "scores_comments",
}


def _flatten(content: str) -> str:
    return " ".join(content.split())


def _close(state: _FoldState, confidence: float) -> _FoldState:
    draft = state.draft
    if draft is None:
        return state
    if not (draft.goal or "").strip():
        logger.debug("Dropping task draft without goal text: %s", draft.model_dump(exclude_none=True))
        return _FoldState(None, state.tasks, state.discarded + 1)
    return _FoldState(None, state.tasks + (finalize_task(draft, confidence),), state.discarded)


def _open(state: _FoldState, goal: str, confidence: float) -> _FoldState:
    return _close(state, confidence)._replace(draft=TaskDraft(goal=goal))


def _update(state: _FoldState, **fields: str) -> _FoldState:
    draft = state.draft or TaskDraft()
    return state._replace(draft=draft.model_copy(update=fields))


def _goal_step(state: _FoldState, section: FormSection, confidence: float, rules: RuleSet) -> _FoldState:
    lines = section.content.splitlines()
    # the header line itself is a goal boundary, even when it carries no text
    state = _open(state, lines[0] if lines else "", confidence)
    for line in lines[1:]:
        if looks_like_task_description(line, rules):
            state = _open(state, line, confidence)
        else:
            goal = state.draft.goal if state.draft else ""
            state = _update(state, goal=f"{goal} {line}".strip())
    return state


def _body_step(state: _FoldState, section: FormSection, confidence: float, rules: RuleSet) -> _FoldState:
    content = _flatten(section.content)
    if not content:
        return state
    return _update(state, **{_BODY_FIELDS[section.type]: content})


def _description_step(state: _FoldState, section: FormSection, confidence: float, rules: RuleSet) -> _FoldState:
    content = _flatten(section.content)
    if not content:
        return state
    if state.draft is None:
        return _open(state, content, confidence)
    if not (state.draft.goal or "").strip():
        return _update(state, goal=content)
    return state


def _unknown_step(state: _FoldState, section: FormSection, confidence: float, rules: RuleSet) -> _FoldState:
    for line in section.content.splitlines():
        if looks_like_task_description(line, rules):
            state = _open(state, line, confidence)
    return state


_Step = Callable[[_FoldState, FormSection, float, RuleSet], _FoldState]

_STEPS: Dict[SectionTypeEnum, _Step] = {
    SectionTypeEnum.goal: _goal_step,
    SectionTypeEnum.active_treatment: _body_step,
    SectionTypeEnum.individual_response: _body_step,
    SectionTypeEnum.scores_comments: _body_step,
    SectionTypeEnum.description: _description_step,
    SectionTypeEnum.unknown: _unknown_step,
}


def _step(state: _FoldState, section: FormSection, *, confidence: float, rules: RuleSet) -> _FoldState:
    return _STEPS[section.type](state, section, confidence, rules)


def extract_structured_tasks(
    sections: List[FormSection], confidence: float, rules: Optional[RuleSet] = None
) -> Tuple[List[FinalizedTask], int]:
    """Returns (tasks in goal order, number of drafts dropped for lacking a goal)."""
    rules = rules or get_rule_set()
    state = reduce(partial(_step, confidence=confidence, rules=rules), sections, _EMPTY)
    state = _close(state, confidence)
    return list(state.tasks), state.discarded


# --- entry points ----------------------------------------------------------

def normalize_confidence(confidence: object) -> float:
    try:
        value = float(confidence)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Unusable OCR confidence %r, treating as 0", confidence)
        return 0.0
    if math.isnan(value):
        logger.warning("OCR confidence is NaN, treating as 0")
        return 0.0
    clamped = min(max(value, 0.0), 100.0)
    if clamped != value:
        logger.warning("OCR confidence %s outside 0-100, clamped to %s", value, clamped)
    return clamped


def review_warnings(task_count: int, confidence: float, rules: RuleSet) -> List[str]:
    if task_count == 0:
        return list(NO_TASKS_WARNINGS)
    if confidence < rules.review_confidence:
        return [LOW_CONFIDENCE_WARNING]
    return []


def parse_structured_isp_form(
    text: Optional[str], confidence: float, rules: Optional[RuleSet] = None
) -> ParseResult:
    """
    Parse the OCR text of a scanned ISP form into structured tasks.

    Never raises on odd input: unlabeled text ends up in an "unknown" section,
    drafts without a goal are counted in discarded_drafts, and the warnings
    tell the caller whether the user should re-scan or review.
    """
    rules = rules or get_rule_set()
    confidence = normalize_confidence(confidence)
    if confidence < rules.low_confidence:
        logger.warning("Low OCR confidence (%.1f%%), results may be inaccurate", confidence)

    extracted = (text or "").strip()
    if not extracted:
        return ParseResult(warnings=[NO_TEXT_WARNING], confidence=confidence)

    sections = identify_form_sections(text, rules)
    tasks, discarded = extract_structured_tasks(sections, confidence, rules)

    logger.info(
        "Parsed %d structured ISP tasks from %d form sections (%d drafts dropped)",
        len(tasks), len(sections), discarded,
    )
    return ParseResult(
        tasks=tasks,
        form_sections=sections,
        warnings=review_warnings(len(tasks), confidence, rules),
        extracted_text=extracted,
        confidence=confidence,
        discarded_drafts=discarded,
    )


def parse_ocr_page(page: OcrPage, rules: Optional[RuleSet] = None) -> ParseResult:
    return parse_structured_isp_form(page.text, page.confidence, rules)
