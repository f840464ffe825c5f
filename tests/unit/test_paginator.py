from kidvid.services.paginator import Paginator
from tests.conftest import FakeProvider


def test_collects_across_pages_and_queries_until_target():
    provider = FakeProvider({
        ("a", None): (["1", "2", "3"], "p2"),
        ("a", "p2"): (["3", "4"], None),
        ("b", None): (["5", "6"], None),
    })

    ids = Paginator(provider).collect(["a", "b"], 5)

    assert ids == ["1", "2", "3", "4", "5"]
    assert [(q, t) for q, t, _ in provider.search_calls] == [("a", None), ("a", "p2"), ("b", None)]


def test_page_token_resets_for_each_query():
    provider = FakeProvider({
        ("a", None): (["1"], "tok"),
        ("a", "tok"): (["2"], "tok2"),
        ("a", "tok2"): ([], None),
        ("b", None): (["3"], "tok"),
    })
    Paginator(provider).collect(["a", "b"], 10)
    b_calls = [t for q, t, _ in provider.search_calls if q == "b"]
    assert b_calls[0] is None


def test_stops_mid_page_when_target_reached():
    provider = FakeProvider({("a", None): (["1", "2", "3", "4"], "more")})
    ids = Paginator(provider).collect(["a", "b"], 2)
    assert ids == ["1", "2"]
    assert len(provider.search_calls) == 1


def test_page_cap_bounds_upstream_calls():
    # endless pagination that never yields anything new
    pages = {("a", None): (["1"], "t")}
    pages[("a", "t")] = (["1"], "t")
    provider = FakeProvider(pages)

    ids = Paginator(provider, max_pages=3).collect(["a"], 10)

    assert ids == ["1"]
    assert len(provider.search_calls) == 3


def test_partial_and_empty_results_are_returned():
    provider = FakeProvider({("a", None): (["1", "1", "2"], None)})
    assert Paginator(provider).collect(["a", "nothing"], 10) == ["1", "2"]
    assert Paginator(FakeProvider()).collect(["x"], 3) == []


def test_excluded_ids_are_never_returned():
    provider = FakeProvider({("a", None): (["1", "2", "3", "4"], None)})
    assert Paginator(provider).collect(["a"], 2, exclude=["1", "3"]) == ["2", "4"]


def test_zero_target_and_blank_queries_skip_upstream():
    provider = FakeProvider()
    assert Paginator(provider).collect(["a"], 0) == []
    assert Paginator(provider).collect(["  ", ""], 5) == []
    assert provider.search_calls == []


def test_queries_are_normalized_and_page_size_bounded():
    provider = FakeProvider({("peppa pig", None): (["1"], None)})
    Paginator(provider).collect(["  peppa   pig "], 200)
    assert provider.search_calls == [("peppa pig", None, 50)]
