from __future__ import annotations

import copy
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

UK_CATEGORY = "Категорія:Українські поети"
UK_CATEGORY_ID = 100

# page id -> (title, url)
UK_PAGES = {
    1: ("Шевченко Тарас Григорович", "https://uk.wikipedia.org/wiki/Шевченко_Тарас_Григорович"),
    2: ("Леся Українка", "https://uk.wikipedia.org/wiki/Леся_Українка"),
    3: ("Руданський Степан Васильович", "https://uk.wikipedia.org/wiki/Руданський_Степан_Васильович"),
}

# page id -> langlinks as returned by action=parse&prop=langlinks
UK_LANGLINKS = {
    UK_CATEGORY_ID: [
        {"lang": "en", "url": "https://en.wikipedia.org/wiki/Category:Ukrainian_poets", "*": "Category:Ukrainian poets"},
        {"lang": "ru", "url": "https://ru.wikipedia.org/wiki/Категория:Поэты_Украины", "*": "Категория:Поэты Украины"},
        {"lang": "de", "url": "https://de.wikipedia.org/wiki/Kategorie:Lyrik", "*": "Kategorie:Lyrik"},
    ],
    1: [
        {"lang": "en", "url": "https://en.wikipedia.org/wiki/Taras_Shevchenko", "*": "Taras Shevchenko"},
        {"lang": "ru", "url": "https://ru.wikipedia.org/wiki/Шевченко,_Тарас_Григорьевич", "*": "Шевченко, Тарас Григорьевич"},
    ],
    2: [
        {"lang": "en", "url": "https://en.wikipedia.org/wiki/Lesya_Ukrainka", "*": "Lesya Ukrainka"},
    ],
    3: [
        {"lang": "ru", "url": "https://ru.wikipedia.org/wiki/Руданский,_Степан_Васильевич", "*": "Руданский, Степан Васильевич"},
        {"lang": "de", "url": "https://de.wikipedia.org/wiki/Stepan_Rudanskyj", "*": "Stepan Rudanskyj"},
    ],
}

# member pages split over two API pages to exercise continuation
UK_MEMBER_PAGES = [[1, 2], [3]]


class FakeWikiApi:
    """
    Stand-in for http_get_json that answers MediaWiki action API URLs from the
    canned data above and records every request it sees.
    """

    def __init__(self, member_pages: Optional[List[List[int]]] = None,
                 overrides: Optional[Dict[Tuple[str, str], Dict[str, Any]]] = None):
        self.member_pages = member_pages if member_pages is not None else UK_MEMBER_PAGES
        # (action-or-list-or-prop, value) -> canned response replacing the default
        self.overrides = overrides or {}
        self.calls: List[Dict[str, str]] = []

    def __call__(self, url: str, timeout: float = 0) -> Dict[str, Any]:
        parts = urllib.parse.urlsplit(url)
        params = {k: v[0] for k, v in urllib.parse.parse_qs(parts.query).items()}
        params["_lang"] = parts.netloc.split(".")[0]
        self.calls.append(params)

        for key, response in self.overrides.items():
            if params.get(key[0]) == key[1]:
                return copy.deepcopy(response)

        if params.get("action") == "parse":
            return {"parse": {"pageid": int(params["pageid"]),
                              "langlinks": copy.deepcopy(UK_LANGLINKS.get(int(params["pageid"]), []))}}
        if params.get("list") == "categorymembers":
            return self._members(params)
        if params.get("prop") == "categoryinfo":
            return self._category(params)
        if params.get("prop") == "info":
            return self._info(params)
        raise AssertionError(f"Unexpected request: {url}")

    def _category(self, params: Dict[str, str]) -> Dict[str, Any]:
        title = params["titles"]
        if title != UK_CATEGORY:
            return {"batchcomplete": "", "query": {"pages": {"-1": {"ns": 14, "title": title, "missing": ""}}}}
        page = {"pageid": UK_CATEGORY_ID, "ns": 14, "title": title,
                "categoryinfo": {"size": 3, "pages": 3, "files": 0, "subcats": 0}}
        return {"batchcomplete": "", "query": {"pages": {str(UK_CATEGORY_ID): page}}}

    def _members(self, params: Dict[str, str]) -> Dict[str, Any]:
        page_no = int(params.get("cmcontinue", "0"))
        ids = self.member_pages[page_no] if page_no < len(self.member_pages) else []
        response: Dict[str, Any] = {
            "batchcomplete": "",
            "query": {"categorymembers": [{"pageid": i, "ns": 0, "title": UK_PAGES[i][0]} for i in ids]},
        }
        if page_no + 1 < len(self.member_pages):
            response["continue"] = {"cmcontinue": str(page_no + 1), "continue": "-||"}
        return response

    def _info(self, params: Dict[str, str]) -> Dict[str, Any]:
        pages = {}
        for raw in params["pageids"].split("|"):
            page_id = int(raw)
            if page_id not in UK_PAGES:
                pages[raw] = {"pageid": page_id, "missing": ""}
                continue
            title, url = UK_PAGES[page_id]
            pages[raw] = {"pageid": page_id, "ns": 0, "title": title, "fullurl": url, "canonicalurl": url}
        return {"batchcomplete": "", "query": {"pages": pages}}

    def requests_for(self, key: str, value: str) -> List[Dict[str, str]]:
        return [c for c in self.calls if c.get(key) == value]
