from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


@dataclass
class CategoryInfo:
    """
    Identity of a category page on one wiki: its numeric page id and full
    title including the namespace prefix.
    """
    page_id: int
    title: str


@dataclass
class PageInfo:
    """
    Title and canonical URL of a page, either on the primary wiki or reached
    through a language link.
    """
    title: str
    url: str = ""


@dataclass
class MergeStats:
    """
    Counters reported at the end of a reconciliation pass.
    """
    merged: int = 0
    added: int = 0
    already_tagged: int = 0


class ActionVerb(str, Enum):
    """
    Edit actions of the update workflow. Only ADD is implemented.
    """

    ADD = "add"
    CHANGE = "change"
    DELETE = "delete"
    REMOVE = "remove"


@dataclass
class Action:
    """
    One edit action requested on the command line together with its JSON payload.
    """
    verb: ActionVerb
    payload: Dict[str, Any] = field(default_factory=dict)
