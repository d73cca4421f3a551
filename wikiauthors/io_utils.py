from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from .config import DEFAULT_JSON_INDENT
from .exceptions import DatasetError, FILE_READ_ERRORS, FILE_WRITE_ERRORS, InvalidQueryError, JSON_ERRORS

# Output path meaning "write to stdout"
STDOUT_PATH = "-"


def load_dataset(path: str) -> List[Dict[str, Any]]:
    """
    Load the author dataset from a UTF-8 JSON file and check that it is a list
    of records, each with a name mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FILE_READ_ERRORS as e:
        raise DatasetError(f"Can't read JSON file '{path}': {e}") from e

    if not isinstance(data, list):
        raise DatasetError(f"'{path}' must contain a JSON array of authors, got {type(data).__name__}")
    for position, record in enumerate(data):
        if not isinstance(record, dict) or not isinstance(record.get("name"), dict):
            raise DatasetError(f"'{path}': record {position} has no 'name' object")
    return data


def dump_dataset(records: List[Dict[str, Any]], indent: Optional[int] = DEFAULT_JSON_INDENT) -> str:
    """
    Serialize the dataset as pretty JSON, keeping non-ASCII names readable.
    """
    return json.dumps(records, ensure_ascii=False, indent=indent) + "\n"


def writes_to_stdout(path: Optional[str]) -> bool:
    return not path or path == STDOUT_PATH


def save_dataset(records: List[Dict[str, Any]], path: Optional[str] = None, makedirs: bool = True) -> None:
    """
    Write the dataset to a file, or to stdout when path is None or "-".
    """
    content = dump_dataset(records)

    if writes_to_stdout(path):
        sys.stdout.write(content)
        sys.stdout.flush()
        return

    if makedirs:
        parent_dir = os.path.dirname(path)
        if parent_dir:
            try:
                os.makedirs(parent_dir, exist_ok=True)
            except OSError as e:
                raise DatasetError(f"Can't create directory '{parent_dir}': {e}") from e

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except FILE_WRITE_ERRORS as e:
        raise DatasetError(f"Can't write JSON file '{path}': {e}") from e


def parse_json_option(text: str, option: str) -> Any:
    """
    Decode the JSON value of a command-line option.
    """
    try:
        return json.loads(text)
    except JSON_ERRORS as e:
        raise InvalidQueryError(f"Option --{option} is not valid JSON: {e}") from e
