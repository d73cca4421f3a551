from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Sequence

from .exceptions import InvalidQueryError, UnsupportedActionError
from .log_utils import logger, LogSource, LogCategory
from .models import Action, ActionVerb


def deep_add(target: Dict[str, Any], payload: Dict[str, Any]) -> bool:
    """
    Add the fields of payload to target in place without overwriting anything.

    Missing keys are created, nested mappings are descended into, and list
    elements not already present are appended. A scalar already present is
    left alone even when it differs. Returns True when target changed.
    """
    changed = False
    for key, value in payload.items():
        cur = target.get(key)
        if key not in target or cur is None:
            target[key] = copy.deepcopy(value)
            changed = True
        elif isinstance(cur, dict) and isinstance(value, dict):
            changed = deep_add(cur, value) or changed
        elif isinstance(cur, list) and isinstance(value, list):
            for item in value:
                if item not in cur:
                    cur.append(copy.deepcopy(item))
                    changed = True
        elif cur != value:
            logger.debug(f"Kept existing value of '{key}'", category=LogCategory.SKIP, source=LogSource.DATASET)
    return changed


def check_actions(actions: Sequence[Action]) -> None:
    """
    Fail on any action that cannot be carried out, before the dataset is touched.
    """
    for action in actions:
        if action.verb is not ActionVerb.ADD:
            raise UnsupportedActionError(action.verb.value)
        if not isinstance(action.payload, dict):
            raise InvalidQueryError(f"Option --{action.verb.value} must be a JSON object")


def apply_actions(dataset: List[Dict[str, Any]], positions: Iterable[int], actions: Sequence[Action]) -> int:
    """
    Apply every action to each targeted record and return how many records changed.
    """
    check_actions(actions)

    changed = 0
    for position in positions:
        record = dataset[position]
        record_changed = False
        for action in actions:
            record_changed = deep_add(record, action.payload) or record_changed
        if record_changed:
            changed += 1
            logger.info(f"Updated record {position}", category=LogCategory.ACTION, source=LogSource.DATASET)
        else:
            logger.debug(f"Record {position} already up to date", category=LogCategory.SKIP,
                         source=LogSource.DATASET)
    return changed
