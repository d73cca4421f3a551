from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import NAME_SIMILARITY_WARN_THRESHOLD
from .dataset import NameIndex, _name_pairs
from .log_utils import logger, LogSource, LogCategory
from .models import MergeStats
from .text_utils import name_similarity


def deep_merge(preferred: Any, fallback: Any) -> Any:
    """
    Merge two JSON-like values field path by field path, where the preferred
    side wins whenever both define a value at the same path.

    Mappings are merged key by key at every depth; keys found on only one side
    are kept. Any other value (scalars, lists, None and empty strings alike) is
    taken whole from the preferred side. Neither input is modified.
    """
    if isinstance(preferred, dict) and isinstance(fallback, dict):
        merged = copy.deepcopy(preferred)
        for key, value in fallback.items():
            if key not in merged:
                merged[key] = copy.deepcopy(value)
            elif isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = deep_merge(merged[key], value)
        return merged
    return copy.deepcopy(preferred)


def tag_matches_in_lang(tag: Any, current_tag: Dict[str, str], lang: str) -> bool:
    """
    Decide whether a stored tag is the same as the current category tag.

    Only the label in one language is compared, so two different tags that
    share a label in that language count as the same. Swap this predicate for
    a stricter comparison to change the rule everywhere.
    """
    if not isinstance(tag, dict):
        return False
    label = current_tag.get(lang)
    return label is not None and tag.get(lang) == label


def has_tag(tags: Any, current_tag: Dict[str, str], lang: str) -> bool:
    if not isinstance(tags, list):
        return False
    return any(tag_matches_in_lang(tag, current_tag, lang) for tag in tags)


def add_tag(record: Dict[str, Any], current_tag: Dict[str, str], lang: str) -> bool:
    """
    Append the current tag (all language variants) to a record's tags unless
    it is already there. Returns True when the tag was appended.
    """
    tags = record.get("tags")
    if not isinstance(tags, list):
        tags = []
        record["tags"] = tags
    if has_tag(tags, current_tag, lang):
        return False
    tags.append(copy.deepcopy(current_tag))
    return True


def merge_into(existing: Dict[str, Any], incoming: Dict[str, Any],
               current_tag: Dict[str, str], current_lang: str) -> Dict[str, Any]:
    """
    Combine a freshly fetched record with the stored record of the same author.

    Stored values win over fetched ones so manual edits survive a refetch;
    fields only the fetch knows about are filled in. Afterwards the current
    category tag is appended once. Returns a new record.
    """
    merged = deep_merge(existing, incoming)
    add_tag(merged, current_tag, current_lang)
    return merged


def find_similar_names(index: NameIndex, record: Dict[str, Any],
                       threshold: float = NAME_SIMILARITY_WARN_THRESHOLD) -> List[Tuple[str, str, int, float]]:
    """
    List indexed names that look like spellings of the record's names in the
    same language, as (lang, indexed name, position, score) tuples sorted by
    score. Exact matches are not reported since they would have resolved.
    """
    hits: List[Tuple[str, str, int, float]] = []
    for lang, name in _name_pairs(record):
        for other, position in index.names_in(lang).items():
            if other == name:
                continue
            score = name_similarity(name, other)
            if score >= threshold:
                hits.append((lang, other, position, score))
    hits.sort(key=lambda h: h[3], reverse=True)
    return hits


def _display_name(record: Dict[str, Any], lang: str) -> str:
    names = record.get("name") or {}
    return names.get(lang) or next(iter(names.values()), "?")


def reconcile_members(dataset: List[Dict[str, Any]], index: NameIndex, members: Iterable[Dict[str, Any]],
                      current_tag: Dict[str, str], current_lang: str,
                      lang_order: Optional[Sequence[str]] = None) -> MergeStats:
    """
    Fold fetched member records into the dataset in place.

    Each member is resolved against the name index in the given language
    priority order (primary language when none is given). A resolved member is
    merged into its stored record; an unresolved one is tagged and appended as
    a new author. The index is updated after every step.
    """
    order = list(lang_order) if lang_order else [current_lang]
    stats = MergeStats()

    for incoming in members:
        label = _display_name(incoming, current_lang)
        position = index.resolve(incoming, order)

        if position is None:
            record = copy.deepcopy(incoming)
            add_tag(record, current_tag, current_lang)
            for lang, other, other_pos, score in find_similar_names(index, record):
                logger.warn(
                    f"Possible duplicate: '{label}' looks like [{lang}] '{other}' at {other_pos} ({score:.2f})",
                    category=LogCategory.MATCH,
                    source=LogSource.DATASET,
                )
            dataset.append(record)
            index.add(record, len(dataset) - 1)
            stats.added += 1
            logger.info(f"New author: {label}", category=LogCategory.MERGE, source=LogSource.DATASET)
            continue

        existing = dataset[position]
        if has_tag(existing.get("tags"), current_tag, current_lang):
            stats.already_tagged += 1
        merged = merge_into(existing, incoming, current_tag, current_lang)
        dataset[position] = merged
        index.add(merged, position)
        stats.merged += 1
        logger.info(f"Merged into {position}: {label}", category=LogCategory.MERGE, source=LogSource.DATASET)

    return stats
