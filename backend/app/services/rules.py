from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple

import yaml

from ..exceptions import RuleConfigError
from ..schemas.isp import SectionTypeEnum

logger = logging.getLogger("swiftnotes")

_TRAILING_PUNCT = ".,;:!?"
_LINE_PATTERN_TEMPLATE = r"^(?:\d+\.?\s*)?(?P<task>.+(?:{verbs}).+)$"


def _default_rules_path() -> Path:
    return Path(__file__).resolve().parents[1] / "configs" / "form_rules.yaml"


@dataclass(frozen=True)
class HeaderRule:
    type: SectionTypeEnum
    pattern: Pattern[str]


@dataclass(frozen=True)
class PhrasingRule:
    name: str
    pattern: Pattern[str]


@dataclass(frozen=True)
class RuleSet:
    headers: Tuple[HeaderRule, ...]
    task_phrasing: Tuple[PhrasingRule, ...]
    min_task_length: int = 20
    low_confidence: float = 60
    review_confidence: float = 80
    line_patterns: Tuple[Pattern[str], ...] = ()
    line_indicators: Tuple[str, ...] = ()
    line_label_pattern: Optional[Pattern[str]] = None
    line_min_length: int = 6
    line_min_task_length: int = 10

    def match_header(self, line: str) -> Optional[Tuple[HeaderRule, re.Match]]:
        for rule in self.headers:
            m = rule.pattern.match(line)
            if m:
                return rule, m
        return None


def _compile(pattern: Any, where: str) -> Pattern[str]:
    if not isinstance(pattern, str) or not pattern:
        raise RuleConfigError(f"{where}: pattern must be a non-empty string")
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise RuleConfigError(f"{where}: invalid pattern {pattern!r}: {e}") from e


def _compile_headers(entries: List[Dict[str, Any]]) -> Tuple[HeaderRule, ...]:
    headers: List[HeaderRule] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise RuleConfigError(f"sections[{i}]: expected a mapping")
        try:
            stype = SectionTypeEnum(entry.get("type"))
        except ValueError:
            raise RuleConfigError(f"sections[{i}]: unknown section type {entry.get('type')!r}") from None
        if stype is SectionTypeEnum.unknown:
            raise RuleConfigError(f"sections[{i}]: 'unknown' cannot have a header")
        # anchored at line start, leading whitespace allowed
        headers.append(HeaderRule(stype, _compile(rf"^\s*{entry.get('pattern')}\s*", f"sections[{i}]")))
    return tuple(headers)


def _compile_phrasing(entries: List[Dict[str, Any]]) -> Tuple[PhrasingRule, ...]:
    rules: List[PhrasingRule] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise RuleConfigError(f"task_phrasing[{i}]: expected a mapping")
        name = str(entry.get("name") or f"rule_{i}")
        rules.append(PhrasingRule(name, _compile(entry.get("pattern"), f"task_phrasing[{i}]")))
    return tuple(rules)


def _compile_line_patterns(groups: List[List[str]]) -> Tuple[Pattern[str], ...]:
    patterns = []
    for i, verbs in enumerate(groups):
        if not verbs:
            raise RuleConfigError(f"line_parser.verb_groups[{i}]: empty verb group")
        alternation = "|".join(re.escape(str(v)) for v in verbs)
        patterns.append(_compile(_LINE_PATTERN_TEMPLATE.format(verbs=alternation), f"line_parser.verb_groups[{i}]"))
    return tuple(patterns)


def compile_rule_spec(spec: Dict[str, Any]) -> RuleSet:
    """Turn the parsed YAML document into compiled rule tables."""
    if not isinstance(spec, dict):
        raise RuleConfigError("rule spec must be a mapping")

    headers = _compile_headers(spec.get("sections") or [])
    if not headers:
        raise RuleConfigError("rule spec defines no section headers")

    confidence = spec.get("confidence") or {}
    line = spec.get("line_parser") or {}
    label = line.get("label_pattern")

    try:
        return RuleSet(
            headers=headers,
            task_phrasing=_compile_phrasing(spec.get("task_phrasing") or []),
            min_task_length=int(spec.get("min_task_length", 20)),
            low_confidence=float(confidence.get("low", 60)),
            review_confidence=float(confidence.get("review", 80)),
            line_patterns=_compile_line_patterns(line.get("verb_groups") or []),
            line_indicators=tuple(str(i).lower() for i in line.get("indicators") or []),
            line_label_pattern=_compile(label, "line_parser.label_pattern") if label else None,
            line_min_length=int(line.get("min_line_length", 6)),
            line_min_task_length=int(line.get("min_task_length", 10)),
        )
    except (TypeError, ValueError) as e:
        raise RuleConfigError(f"invalid threshold in rule spec: {e}") from e


def _load_rule_spec(path: Optional[Path] = None) -> Dict[str, Any]:
    if path is None:
        configured = os.getenv("FORM_RULES_PATH")
        path = Path(configured).expanduser() if configured else _default_rules_path()
        if not path.exists():
            logger.warning("FORM_RULES_PATH %s does not exist, using packaged rules", path)
            path = _default_rules_path()
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except OSError as e:
        raise RuleConfigError(f"cannot read rule file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RuleConfigError(f"cannot parse rule file {path}: {e}") from e


def load_rule_set(path: Optional[Path] = None) -> RuleSet:
    rules = compile_rule_spec(_load_rule_spec(Path(path) if path else None))
    logger.debug(
        "Loaded %d section headers and %d task phrasing rules",
        len(rules.headers), len(rules.task_phrasing),
    )
    return rules


@lru_cache(maxsize=1)
def get_rule_set() -> RuleSet:
    return load_rule_set()


def reset_rule_cache() -> None:
    get_rule_set.cache_clear()


# --- line classifier -------------------------------------------------------

def _normalize_line(line: Optional[str]) -> str:
    return (line or "").strip().rstrip(_TRAILING_PUNCT).rstrip()


def match_task_rule(line: Optional[str], rules: Optional[RuleSet] = None) -> Optional[str]:
    """
    Name of the first phrasing rule the line satisfies, or None.
    Lines shorter than the configured minimum never match.
    """
    rules = rules or get_rule_set()
    s = _normalize_line(line)
    if len(s) < rules.min_task_length:
        return None
    for rule in rules.task_phrasing:
        if rule.pattern.search(s):
            return rule.name
    return None


def looks_like_task_description(line: Optional[str], rules: Optional[RuleSet] = None) -> bool:
    return match_task_rule(line, rules) is not None
