"""
Search Term Grammar

The upstream search endpoint takes a single prefixed term:
  any:<text>          free-text keyword search
  id:<number>         supplier order code lookup
  manuPartNum:<mpn>   manufacturer part number lookup
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from CatalogSync.utils.config import clamp_int

RESPONSE_GROUPS = ("small", "medium", "large")
DEFAULT_RESPONSE_GROUP = "large"

_WHITESPACE = re.compile(r"\s")
_DIGITS_ONLY = re.compile(r"^\d+$")


@dataclass
class SearchQuery:
    """One lookup request as accepted by the batch and admin search surfaces"""
    term: Optional[str] = None
    q: Optional[str] = None
    mpn: Optional[str] = None
    id: Optional[str] = None
    keyword: Optional[str] = None
    offset: Optional[Union[int, float, str]] = None
    number_of_results: Optional[Union[int, float, str]] = None
    response_group: Optional[str] = None


def _clean(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def classify_query(q: str) -> str:
    """Map bare text to a term: whitespace -> any, digits -> id, else -> manuPartNum."""
    if _WHITESPACE.search(q):
        return f"any:{q}"
    if _DIGITS_ONLY.match(q):
        return f"id:{q}"
    return f"manuPartNum:{q}"


def build_search_term(
    term: Optional[str] = None,
    q: Optional[str] = None,
    mpn: Optional[str] = None,
    id: Optional[str] = None,
    keyword: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve the upstream term; explicit fields win in order term > mpn > id > keyword,
    otherwise q is classified. Returns None when nothing usable was given.
    """
    direct = _clean(term)
    if direct:
        return direct

    mpn = _clean(mpn)
    if mpn:
        return f"manuPartNum:{mpn}"

    identifier = _clean(id)
    if identifier:
        return f"id:{identifier}"

    keyword = _clean(keyword)
    if keyword:
        return f"any:{keyword}"

    text = _clean(q)
    if not text:
        return None
    return classify_query(text)


def term_for_query(query: SearchQuery) -> Optional[str]:
    return build_search_term(term=query.term, q=query.q, mpn=query.mpn, id=query.id, keyword=query.keyword)


def input_label(query: SearchQuery) -> str:
    """The raw input a batch result is reported under."""
    for value in (query.term, query.mpn, query.id, query.keyword, query.q):
        cleaned = _clean(value)
        if cleaned:
            return cleaned
    return ""


def parse_response_group(value: Any, fallback: str = DEFAULT_RESPONSE_GROUP) -> str:
    if value in RESPONSE_GROUPS:
        return value
    return fallback


def query_from_input(value: Any, fallback_response_group: str = DEFAULT_RESPONSE_GROUP) -> SearchQuery:
    """Normalize a batch item: a bare string is a q query, a dict maps field by field."""
    if isinstance(value, str):
        return SearchQuery(q=value, response_group=fallback_response_group)
    if not isinstance(value, dict):
        return SearchQuery(response_group=fallback_response_group)

    data: Dict[str, Any] = value
    return SearchQuery(
        term=_as_text(data.get("term")),
        q=_as_text(data.get("q")),
        mpn=_as_text(data.get("mpn")),
        id=_as_text(data.get("id")),
        keyword=_as_text(data.get("keyword")),
        offset=data.get("offset"),
        number_of_results=data.get("numberOfResults"),
        response_group=parse_response_group(data.get("responseGroup"), fallback_response_group),
    )


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass
class BatchDefaults:
    offset: int = 0
    number_of_results: int = 1
    response_group: str = DEFAULT_RESPONSE_GROUP


def _non_negative(value: Any, default: int) -> int:
    return clamp_int(value, default, minimum=0)


def normalize_batch_body(body: Any) -> Tuple[List[SearchQuery], BatchDefaults]:
    """
    Accept a list of queries, {"queries": [...], <defaults>}, or a single query object.

    Returns the queries plus the defaults applied to fields a query leaves unset.
    """
    if isinstance(body, list):
        return [query_from_input(item) for item in body], BatchDefaults()

    data = body if isinstance(body, dict) else {}
    response_group = parse_response_group(data.get("responseGroup"))
    defaults = BatchDefaults(
        offset=_non_negative(data.get("offset"), 0),
        number_of_results=clamp_int(data.get("numberOfResults"), 1),
        response_group=response_group,
    )

    queries_raw = data.get("queries") if isinstance(data.get("queries"), list) else []
    queries = [query_from_input(item, response_group) for item in queries_raw]
    if queries:
        return queries, defaults

    return [query_from_input(data, response_group)], defaults


def resolve_paging(query: SearchQuery, defaults: BatchDefaults) -> Tuple[int, int, str]:
    """(offset, number_of_results, response_group) for one batch query."""
    offset = _non_negative(query.offset, defaults.offset)
    number_of_results = clamp_int(query.number_of_results, defaults.number_of_results)
    return offset, number_of_results, query.response_group or defaults.response_group
