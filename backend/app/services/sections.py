from __future__ import annotations

from typing import List, Optional

from ..schemas.isp import FormSection, SectionTypeEnum
from .rules import RuleSet, get_rule_set


def identify_form_sections(text: Optional[str], rules: Optional[RuleSet] = None) -> List[FormSection]:
    """
    Split raw OCR text into form sections in a single pass.

    A line starting with a header keyword ("Goal:", "Active Treatment:", ...)
    closes the open section and opens a new one, seeded with whatever follows
    the keyword on that line. Every other non-blank line is appended to the
    open section; text before the first header lands in an "unknown" section.
    Blank lines are skipped, nothing else is dropped.
    """
    rules = rules or get_rule_set()
    sections: List[FormSection] = []

    current_type: Optional[SectionTypeEnum] = None
    current_label: Optional[str] = None
    current_start = 0
    content: List[str] = []

    def _close() -> None:
        if current_type is not None:
            sections.append(FormSection(
                type=current_type,
                content="\n".join(content),
                label=current_label,
                start_line=current_start,
            ))

    for idx, raw in enumerate((text or "").splitlines()):
        line = raw.strip()
        if not line:
            continue

        hit = rules.match_header(line)
        if hit:
            _close()
            rule, m = hit
            current_type = rule.type
            current_label = m.group(0).strip()
            current_start = idx
            remainder = line[m.end():].strip()
            content = [remainder] if remainder else []
            continue

        if current_type is None:
            current_type = SectionTypeEnum.unknown
            current_label = None
            current_start = idx
            content = []
        content.append(line)

    _close()
    return sections
