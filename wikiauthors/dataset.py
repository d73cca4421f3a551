from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .log_utils import logger, LogCategory, LogSource


def _name_pairs(record: Dict[str, Any]) -> Iterator[Tuple[str, str]]:
    """
    Yield the (lang, name) pairs of a record, skipping empty or non-string names.
    """
    names = record.get("name") if isinstance(record, dict) else None
    if not isinstance(names, dict):
        return
    for lang, name in names.items():
        if isinstance(name, str) and name:
            yield lang, name


class NameIndex:
    """
    Exact-name lookup from (language code, display name) to the position of
    a record in the dataset list.

    The index is kept in step with the dataset during a run: every record
    appended or merged is registered right away, so later members of the same
    batch resolve against authors added earlier. The first position registered
    for a pair keeps it.
    """

    def __init__(self):
        self._positions: Dict[str, Dict[str, int]] = {}

    @classmethod
    def build(cls, records: Sequence[Dict[str, Any]]) -> "NameIndex":
        index = cls()
        for position, record in enumerate(records):
            index.add(record, position)
        return index

    def add(self, record: Dict[str, Any], position: int) -> None:
        """
        Register every name of a record under the given position.
        """
        for lang, name in _name_pairs(record):
            by_name = self._positions.setdefault(lang, {})
            current = by_name.setdefault(name, position)
            if current != position:
                logger.debug(
                    f"[{lang}] {name} already indexed at {current}; keeping it over {position}",
                    category=LogCategory.DEBUG,
                    source=LogSource.DATASET,
                )

    def lookup(self, lang: str, name: str) -> Optional[int]:
        return self._positions.get(lang, {}).get(name)

    def resolve(self, record: Dict[str, Any], lang_order: Iterable[str] = ()) -> Optional[int]:
        """
        Find the existing record a fetched record belongs to.

        Languages are tried in the given priority order first, then any other
        language the record carries in its own key order. The first pair found
        in the index wins.
        """
        names = record.get("name") if isinstance(record, dict) else None
        if not isinstance(names, dict):
            return None

        ordered: List[str] = [lg for lg in lang_order if lg in names]
        ordered += [lg for lg in names if lg not in ordered]

        for lang in ordered:
            name = names.get(lang)
            if not isinstance(name, str) or not name:
                continue
            position = self.lookup(lang, name)
            if position is not None:
                return position
        return None

    def names_in(self, lang: str) -> Dict[str, int]:
        """
        Return a copy of the name-to-position mapping for one language.
        """
        return dict(self._positions.get(lang, {}))

    def __contains__(self, key: Tuple[str, str]) -> bool:
        lang, name = key
        return self.lookup(lang, name) is not None

    def __len__(self) -> int:
        return sum(len(v) for v in self._positions.values())
