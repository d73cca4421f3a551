from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .exceptions import InvalidQueryError
from .log_utils import logger, LogSource, LogCategory


class PatternNode:
    """
    Base of the compiled pattern tree. A node decides whether a concrete
    JSON-like value contains the structure it describes.
    """

    def matches(self, candidate: Any) -> bool:
        raise NotImplementedError


@dataclass
class ScalarPattern(PatternNode):
    """
    Leaf of a pattern: the candidate must hold an equal scalar.
    """
    value: Any

    def matches(self, candidate: Any) -> bool:
        if isinstance(candidate, (dict, list)):
            return False
        # keep JSON true/false apart from 1/0
        if isinstance(self.value, bool) != isinstance(candidate, bool):
            return False
        return candidate == self.value


@dataclass
class MappingPattern(PatternNode):
    """
    Every key of the pattern must exist in the candidate mapping with a
    matching value. An open pattern ignores extra keys of the candidate.
    """
    entries: Dict[str, PatternNode] = field(default_factory=dict)
    open: bool = True

    def matches(self, candidate: Any) -> bool:
        if not isinstance(candidate, dict):
            return False
        for key, node in self.entries.items():
            if key not in candidate or not node.matches(candidate[key]):
                return False
        return self.open or len(candidate) == len(self.entries)


@dataclass
class SequencePattern(PatternNode):
    """
    Every element of the pattern must match at least one element of the
    candidate list, in any order. An open pattern ignores extra elements.
    """
    items: List[PatternNode] = field(default_factory=list)
    open: bool = True

    def matches(self, candidate: Any) -> bool:
        if not isinstance(candidate, list):
            return False
        for node in self.items:
            if not any(node.matches(elem) for elem in candidate):
                return False
        return self.open or len(candidate) == len(self.items)


def compile_pattern(obj: Any, allow_extra: bool = True) -> PatternNode:
    """
    Turn a decoded JSON pattern into a pattern tree whose mapping and
    sequence nodes are all open (or all closed).

    Sub-structures reachable through several paths are compiled once and the
    node is shared, so a value referenced from many places is not walked again.
    """
    compiled: Dict[int, PatternNode] = {}

    def _compile(value: Any) -> PatternNode:
        if not isinstance(value, (dict, list)):
            return ScalarPattern(value)
        key = id(value)
        if key in compiled:
            return compiled[key]
        if isinstance(value, dict):
            node = MappingPattern(open=allow_extra)
            compiled[key] = node
            for k, v in value.items():
                node.entries[k] = _compile(v)
        else:
            node = SequencePattern(open=allow_extra)
            compiled[key] = node
            node.items.extend(_compile(v) for v in value)
        return node

    return _compile(obj)


def matches(pattern: Any, candidate: Any) -> bool:
    """
    Soft-match a raw pattern against one candidate value.
    """
    node = pattern if isinstance(pattern, PatternNode) else compile_pattern(pattern)
    return node.matches(candidate)


def validate_patterns(patterns: Sequence[Any]) -> None:
    """
    Reject any pattern that is not a JSON object at its top level.
    """
    for pattern in patterns:
        if not isinstance(pattern, dict):
            text = json.dumps(pattern, ensure_ascii=False)
            raise InvalidQueryError(f"Option --find '{text}' must be a JSON object")


def find_matches(dataset: Sequence[Any], patterns: Sequence[Any]) -> List[int]:
    """
    Return the positions of dataset records that softly match any of the
    patterns, without duplicates, in order of first match.

    An empty pattern {} selects every record. All patterns are validated
    before any record is inspected.
    """
    validate_patterns(patterns)

    if any(not p for p in patterns):
        logger.debug("Wildcard pattern; selecting all records", category=LogCategory.QUERY,
                     source=LogSource.DATASET)
        return list(range(len(dataset)))

    result: List[int] = []
    seen = set()
    for pattern in patterns:
        node = compile_pattern(pattern)
        hits = 0
        for position, record in enumerate(dataset):
            if node.matches(record):
                hits += 1
                if position not in seen:
                    seen.add(position)
                    result.append(position)
        logger.debug(f"{hits} record(s) match {json.dumps(pattern, ensure_ascii=False)}",
                     category=LogCategory.QUERY, source=LogSource.DATASET)
    return result
