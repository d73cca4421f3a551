from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional

from .config import CATEGORY_MEMBERS_LIMIT, CATEGORY_MEMBER_TYPE, PAGE_IDS_PER_REQUEST
from .exceptions import FIELD_ACCESS_ERRORS, RemoteSourceError
from .http_utils import http_get_json
from .log_utils import logger, LogSource, LogCategory
from .models import CategoryInfo, PageInfo
from .text_utils import build_url, wiki_api_url, safe_get_nested, strip_namespace, unescape_link_title


def _api_get(lang: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Issue one GET against the action API of the given language edition and
    fail on an upstream error payload.
    """
    query = dict(params)
    query.setdefault("format", "json")
    url = build_url(wiki_api_url(lang), query)
    logger.debug(f"GET {url}", category=LogCategory.DEBUG, source=LogSource.WIKIPEDIA)
    data = http_get_json(url)
    check_wiki_error(data)
    return data


def check_wiki_error(data: Dict[str, Any]) -> None:
    """
    Raise RemoteSourceError when the API answered with an error object.
    """
    err = data.get("error")
    if err is None:
        return
    if isinstance(err, dict):
        code = err.get("code") or "unknown"
        info = err.get("info") or ""
        raise RemoteSourceError(f"Wiki error: {code}. {info}".rstrip())
    raise RemoteSourceError(f"Wiki error: {err}")


def _warning_text(warnings: Any) -> str:
    """
    Flatten the warnings object of a response into one line, whatever module
    emitted the warnings.
    """
    if not isinstance(warnings, dict):
        return str(warnings)
    parts = []
    for module, body in warnings.items():
        if isinstance(body, dict):
            text = body.get("*") or body.get("warnings") or ""
        else:
            text = body
        parts.append(f"{module}: {text}")
    return "; ".join(parts)


def check_wiki_data(data: Dict[str, Any], expected: str) -> None:
    """
    Make sure the response carries the expected top-level key. A response
    without it is treated as fatal: the API sends warnings in place of data
    when a request is malformed.
    """
    if expected in data:
        return
    if "warnings" in data:
        raise RemoteSourceError(f"Wiki warnings: {_warning_text(data['warnings'])}")
    raise RemoteSourceError(f"Malformed response: missing '{expected}'")


def get_category_info(lang: str, category_title: str) -> Optional[CategoryInfo]:
    """
    Look up a category page by its full title. Returns None when the wiki has
    no such page.
    """
    data = _api_get(lang, {
        "action": "query",
        "prop": "categoryinfo",
        "titles": category_title,
    })
    check_wiki_data(data, "query")

    pages = safe_get_nested(data, "query", "pages") or {}
    if not pages:
        return None
    try:
        page_key, page = next(iter(pages.items()))
        # missing pages come back under a negative pseudo id
        if str(page_key).startswith("-") or "missing" in page or "invalid" in page:
            return None
        return CategoryInfo(page_id=int(page["pageid"]), title=page.get("title") or category_title)
    except FIELD_ACCESS_ERRORS as e:
        raise RemoteSourceError(f"Malformed categoryinfo response: {e}") from e


def iter_category_members(lang: str, category_page_id: int,
                          limit: int = CATEGORY_MEMBERS_LIMIT) -> Iterator[List[int]]:
    """
    Walk the member list of a category and yield the page ids of each result
    page as it arrives.

    Pagination follows the continue object of every response until the server
    stops sending one. The iterator cannot be resumed: starting over means
    calling this function again.
    """
    params = {
        "action": "query",
        "list": "categorymembers",
        "cmpageid": category_page_id,
        "cmtype": CATEGORY_MEMBER_TYPE,
        "cmlimit": limit,
    }
    continuation: Dict[str, Any] = {}
    while True:
        data = _api_get(lang, {**params, **continuation})
        check_wiki_data(data, "query")

        members = safe_get_nested(data, "query", "categorymembers") or []
        try:
            page_ids = [int(m["pageid"]) for m in members]
        except FIELD_ACCESS_ERRORS as e:
            raise RemoteSourceError(f"Malformed categorymembers response: {e}") from e
        logger.debug(f"{len(page_ids)} member(s) on this page", category=LogCategory.FETCH,
                     source=LogSource.WIKIPEDIA)
        if page_ids:
            yield page_ids

        cont = data.get("continue")
        if not cont:
            break
        continuation = dict(cont)


def get_page_info(lang: str, page_ids: Iterable[int]) -> Dict[int, PageInfo]:
    """
    Fetch titles and canonical URLs for a batch of pages, keyed by page id.
    Pages the wiki reports as missing are left out.
    """
    ids = [int(p) for p in page_ids]
    result: Dict[int, PageInfo] = {}
    for start in range(0, len(ids), PAGE_IDS_PER_REQUEST):
        chunk = ids[start:start + PAGE_IDS_PER_REQUEST]
        data = _api_get(lang, {
            "action": "query",
            "prop": "info",
            "inprop": "url",
            "pageids": "|".join(str(p) for p in chunk),
        })
        check_wiki_data(data, "query")

        pages = safe_get_nested(data, "query", "pages") or {}
        try:
            for page in pages.values():
                if "missing" in page or "invalid" in page:
                    continue
                url = page.get("fullurl") or page.get("canonicalurl") or ""
                result[int(page["pageid"])] = PageInfo(title=page["title"], url=url)
        except FIELD_ACCESS_ERRORS as e:
            raise RemoteSourceError(f"Malformed info response: {e}") from e
    return result


def get_page_language_links(lang: str, page_id: int, wanted_langs: Iterable[str]) -> Dict[str, PageInfo]:
    """
    Return the interlanguage links of a page, restricted to the wanted
    languages, as {lang: PageInfo(title, url)}.
    """
    wanted = set(wanted_langs)
    if not wanted:
        return {}

    data = _api_get(lang, {
        "action": "parse",
        "pageid": page_id,
        "prop": "langlinks",
    })
    check_wiki_data(data, "parse")

    result: Dict[str, PageInfo] = {}
    try:
        for link in safe_get_nested(data, "parse", "langlinks") or []:
            target = link.get("lang")
            if target not in wanted or target in result:
                continue
            title = link.get("*") or link.get("title") or ""
            result[target] = PageInfo(title=unescape_link_title(title), url=link.get("url") or "")
    except FIELD_ACCESS_ERRORS as e:
        raise RemoteSourceError(f"Malformed langlinks response: {e}") from e
    return result


def fetch_category_tag(lang: str, category: CategoryInfo, langs: Iterable[str]) -> Dict[str, str]:
    """
    Build the tag object for a category: its label in the primary language
    plus every wanted translation, without namespace prefixes.
    """
    others = [lg for lg in langs if lg != lang]
    links = get_page_language_links(lang, category.page_id, others)

    tag = {lang: strip_namespace(category.title)}
    for target in others:
        if target in links:
            tag[target] = strip_namespace(links[target].title)
    return tag


def iter_member_records(lang: str, category: CategoryInfo, langs: Iterable[str]) -> Iterator[Dict[str, Any]]:
    """
    Yield one author record per member page of the category, in listing order.

    Each record holds the name and URL on the primary wiki, extended with the
    names and URLs of every wanted secondary language the page links to. Pages
    listed more than once are yielded only the first time.
    """
    others = [lg for lg in langs if lg != lang]
    seen = set()

    for page_ids in iter_category_members(lang, category.page_id):
        infos = get_page_info(lang, page_ids)
        for page_id in page_ids:
            if page_id in seen:
                continue
            seen.add(page_id)

            info = infos.get(page_id)
            if info is None:
                logger.warn(f"Page {page_id} has no info; skipped", category=LogCategory.SKIP,
                            source=LogSource.WIKIPEDIA)
                continue

            record: Dict[str, Any] = {"name": {lang: info.title}, "wiki": {lang: info.url}}
            for target, link in get_page_language_links(lang, page_id, others).items():
                record["name"][target] = link.title
                record["wiki"][target] = link.url

            logger.debug(f"Fetched {info.title} ({len(record['name'])} language(s))",
                         category=LogCategory.MEMBER, source=LogSource.WIKIPEDIA)
            yield record
