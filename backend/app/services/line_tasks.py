# backend/app/services/line_tasks.py
from __future__ import annotations

import logging
from typing import List, Optional

from ..schemas.isp import FinalizedTask, ParseResult
from .rules import RuleSet, get_rule_set
from .structurer import NO_TEXT_WARNING, normalize_confidence, review_warnings

logger = logging.getLogger("swiftnotes")


def _task_text(line: str, rules: RuleSet) -> Optional[str]:
    for pattern in rules.line_patterns:
        m = pattern.match(line)
        if m:
            return m.group("task").strip()

    lower = line.lower()
    if any(indicator in lower for indicator in rules.line_indicators):
        if rules.line_label_pattern is not None:
            return rules.line_label_pattern.sub("", line, count=1).strip()
        return line
    return None


def parse_isp_tasks(text: Optional[str], confidence: float, rules: Optional[RuleSet] = None) -> ParseResult:
    """
    Line-by-line fallback for screenshots without form headers.

    Each line long enough to matter is matched against the action-verb
    patterns (a leading "1." style number is dropped), then against the
    indicator phrases (a leading "Goal:"-style label is dropped).
    """
    rules = rules or get_rule_set()
    confidence = normalize_confidence(confidence)
    if confidence < rules.low_confidence:
        logger.warning("Low OCR confidence (%.1f%%), results may be inaccurate", confidence)

    extracted = (text or "").strip()
    if not extracted:
        return ParseResult(warnings=[NO_TEXT_WARNING], confidence=confidence)

    lines = [l.strip() for l in extracted.split("\n")]
    lines = [l for l in lines if len(l) >= rules.line_min_length]

    tasks: List[FinalizedTask] = []
    for line in lines:
        task_text = _task_text(line, rules)
        if task_text and len(task_text) >= rules.line_min_task_length:
            tasks.append(FinalizedTask(description=task_text, confidence=confidence))

    logger.info("Parsed %d potential ISP tasks from %d lines", len(tasks), len(lines))
    return ParseResult(
        tasks=tasks,
        warnings=review_warnings(len(tasks), confidence, rules),
        extracted_text=extracted,
        confidence=confidence,
    )
