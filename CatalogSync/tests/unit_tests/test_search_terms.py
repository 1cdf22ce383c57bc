import pytest

from CatalogSync.suppliers.search_terms import (
    BatchDefaults,
    SearchQuery,
    build_search_term,
    classify_query,
    input_label,
    normalize_batch_body,
    parse_response_group,
    query_from_input,
    resolve_paging,
)


class TestBuildSearchTerm:

    @pytest.mark.parametrize("q, expected", [
        ("raspberry pi", "any:raspberry pi"),
        ("2842174", "id:2842174"),
        ("BC547B", "manuPartNum:BC547B"),
        ("  LM317T  ", "manuPartNum:LM317T"),
    ])
    def test_classifies_bare_query(self, q, expected):
        assert build_search_term(q=q) == expected

    def test_priority_term_mpn_id_keyword(self):
        assert build_search_term(term="any:x", mpn="M", id="1", keyword="k", q="q") == "any:x"
        assert build_search_term(mpn="M", id="1", keyword="k", q="q") == "manuPartNum:M"
        assert build_search_term(id="1", keyword="k", q="q") == "id:1"
        assert build_search_term(keyword="led strip", q="q") == "any:led strip"

    def test_blank_fields_are_ignored(self):
        assert build_search_term(term="  ", mpn="", q="pi zero") == "any:pi zero"

    def test_nothing_usable(self):
        assert build_search_term() is None
        assert build_search_term(q="   ") is None

    def test_classify_query(self):
        assert classify_query("a b") == "any:a b"
        assert classify_query("123") == "id:123"
        assert classify_query("12A") == "manuPartNum:12A"


class TestBatchInput:

    def test_string_becomes_q(self):
        query = query_from_input("raspberry pi")

        assert query.q == "raspberry pi"
        assert query.response_group == "large"

    def test_dict_fields_mapped(self):
        query = query_from_input({"mpn": "BC547", "numberOfResults": "3", "responseGroup": "small", "offset": 2})

        assert query.mpn == "BC547"
        assert query.number_of_results == "3"
        assert query.offset == 2
        assert query.response_group == "small"

    def test_invalid_response_group_falls_back(self):
        assert parse_response_group("huge") == "large"
        assert parse_response_group("huge", "medium") == "medium"

    def test_input_label_priority(self):
        assert input_label(SearchQuery(q="q", keyword="k")) == "k"
        assert input_label(SearchQuery()) == ""

    def test_list_body(self):
        queries, defaults = normalize_batch_body(["pi", {"id": "1"}])

        assert [q.q for q in queries] == ["pi", None]
        assert queries[1].id == "1"
        assert defaults == BatchDefaults(offset=0, number_of_results=1, response_group="large")

    def test_object_body_with_defaults(self):
        queries, defaults = normalize_batch_body(
            {"queries": ["pi"], "offset": "4", "numberOfResults": 7.9, "responseGroup": "medium"}
        )

        assert len(queries) == 1
        assert queries[0].response_group == "medium"
        assert defaults == BatchDefaults(offset=4, number_of_results=7, response_group="medium")

    def test_single_query_object(self):
        queries, _ = normalize_batch_body({"mpn": "LM317"})

        assert len(queries) == 1
        assert queries[0].mpn == "LM317"

    def test_garbage_body_yields_one_empty_query(self):
        queries, _ = normalize_batch_body(None)

        assert len(queries) == 1
        assert build_search_term(q=queries[0].q) is None

    def test_resolve_paging_clamps(self):
        defaults = BatchDefaults(offset=3, number_of_results=5, response_group="small")

        assert resolve_paging(SearchQuery(), defaults) == (3, 5, "small")
        assert resolve_paging(SearchQuery(offset=-4, number_of_results=0.5, response_group="large"), defaults) == (
            0, 1, "large"
        )
        assert resolve_paging(SearchQuery(offset="abc", number_of_results="9"), defaults) == (3, 9, "small")
