from datetime import datetime, timezone

from throttle.core.keys import default_resolver, hash_key, to_resolver_key


def test_default_resolver_returns_all_arguments():
    assert default_resolver(1, 2) == [1, 2]
    assert default_resolver() == []
    assert default_resolver(1, b=2) == [1, {"b": 2}]


def test_single_element_collapses_to_its_key():
    assert to_resolver_key([1]) == "1"
    assert to_resolver_key(("a",)) == "a"
    assert to_resolver_key([[None]]) == "None"


def test_primitives_stringify():
    assert to_resolver_key(1333) == "1333"
    assert to_resolver_key("x") == "x"
    assert to_resolver_key(None) == "None"
    assert to_resolver_key(True) == "True"


def test_objects_hash_structurally():
    assert to_resolver_key({"id": 1333}) == to_resolver_key({"id": 1333})
    assert to_resolver_key({"a": 1, "b": 2}) == to_resolver_key({"b": 2, "a": 1})
    assert to_resolver_key({"id": 1}) != to_resolver_key({"id": 2})
    assert to_resolver_key([1, 2]) == hash_key([1, 2])
    assert to_resolver_key([1, 2]) != to_resolver_key([2, 1])


def test_sets_and_non_string_keys_hash_stably():
    assert hash_key({3, 1, 2}) == hash_key({1, 2, 3})
    assert hash_key({(1, 2): "x", 5: "y"}) == hash_key({5: "y", (1, 2): "x"})


def test_dates_hash_by_value():
    a = datetime(2024, 1, 1, tzinfo=timezone.utc)
    b = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert to_resolver_key(a) == to_resolver_key(b)
    assert to_resolver_key(a) != to_resolver_key(datetime(2024, 1, 2, tzinfo=timezone.utc))


def test_keyword_arguments_affect_key():
    assert to_resolver_key(default_resolver(1, b=2)) != to_resolver_key(default_resolver(1, b=3))
    assert to_resolver_key(default_resolver(1, b=2, c=3)) == to_resolver_key(default_resolver(1, c=3, b=2))


def test_keyword_arguments_differ_from_a_positional_mapping():
    assert to_resolver_key(default_resolver(a=1)) != to_resolver_key(default_resolver({"a": 1}))
    assert to_resolver_key(default_resolver(1, a=2)) != to_resolver_key(default_resolver(1, {"a": 2}))
