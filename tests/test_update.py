"""
Tests for the update operator compiler.
"""

import pytest

from docstore.errors import InvalidUpdateOperatorError
from docstore.operators import update
from docstore.operators.update import to_number


class TestCompile:
    """Test update operator validation."""

    @pytest.mark.parametrize("spec", [None, {}])
    def test_empty_is_noop(self, spec):
        assert update(spec) is None

    def test_function_passes_through(self):
        def touch(doc):
            doc["touched"] = True
            return doc

        assert update(touch) is touch

    def test_unknown_operator(self):
        with pytest.raises(InvalidUpdateOperatorError) as exc_info:
            update({"$set": {"a": 1}, "$addToSet": {"tags": "x"}})
        assert exc_info.value.key == "$addToSet"
        assert "$addToSet" in str(exc_info.value)

    def test_plain_field_is_not_an_operator(self):
        with pytest.raises(InvalidUpdateOperatorError) as exc_info:
            update({"title": "New"})
        assert exc_info.value.key == "title"

    def test_operator_argument_must_be_mapping(self):
        with pytest.raises(InvalidUpdateOperatorError) as exc_info:
            update({"$unset": ["title"]})
        assert exc_info.value.key == "$unset"

    def test_non_mapping_spec(self):
        with pytest.raises(InvalidUpdateOperatorError):
            update("$set")

    def test_none_document_passes_through(self):
        assert update({"$set": {"a": 1}})(None) is None

    def test_mutates_in_place(self):
        doc = {"a": 1}
        assert update({"$set": {"b": 2}})(doc) is doc
        assert doc == {"a": 1, "b": 2}


class TestOperators:
    """Test each update operator."""

    def test_set(self):
        doc = update({"$set": {"title": "New", "year": 2024}})({"title": "Old"})
        assert doc == {"title": "New", "year": 2024}

    def test_unset(self):
        doc = update({"$unset": {"year": 1, "missing": 1}})({"title": "T", "year": 1})
        assert doc == {"title": "T"}

    def test_rename(self):
        doc = update({"$rename": {"name": "title"}})({"name": "T", "year": 1})
        assert doc == {"title": "T", "year": 1}

    def test_rename_absent_field_is_noop(self):
        doc = update({"$rename": {"name": "title"}})({"year": 1})
        assert doc == {"year": 1}

    def test_push_appends(self):
        doc = update({"$push": {"tags": "b"}})({"tags": ["a"]})
        assert doc == {"tags": ["a", "b"]}

    def test_push_creates_list(self):
        doc = update({"$push": {"tags": "a"}})({})
        assert doc == {"tags": ["a"]}

    def test_push_promotes_scalar(self):
        doc = update({"$push": {"tags": "b"}})({"tags": "a"})
        assert doc == {"tags": ["a", "b"]}

    def test_push_list_value_is_one_element(self):
        doc = update({"$push": {"pairs": [1, 2]}})({"pairs": []})
        assert doc == {"pairs": [[1, 2]]}

    def test_pull_removes_all_equal(self):
        doc = update({"$pull": {"tags": "a"}})({"tags": ["a", "b", "a", "c"]})
        assert doc == {"tags": ["b", "c"]}

    def test_pull_is_strict(self):
        doc = update({"$pull": {"nums": "1"}})({"nums": [1, "1", 2]})
        assert doc == {"nums": [1, 2]}

    def test_pull_matching_scalar_becomes_empty_list(self):
        doc = update({"$pull": {"tags": "a"}})({"tags": "a"})
        assert doc == {"tags": []}

    def test_pull_other_scalar_untouched(self):
        doc = update({"$pull": {"tags": "a"}})({"tags": "b"})
        assert doc == {"tags": "b"}

    def test_pull_absent_field_untouched(self):
        assert update({"$pull": {"tags": "a"}})({}) == {}

    def test_inc_numeric_string(self):
        doc = update({"$inc": {"count": 2}})({"count": "3"})
        assert doc == {"count": 5}

    def test_inc_missing_field(self):
        doc = update({"$inc": {"count": 4}})({})
        assert doc == {"count": 4}

    def test_inc_float(self):
        doc = update({"$inc": {"price": "0.5"}})({"price": 1.25})
        assert doc == {"price": 1.75}

    def test_inc_unparsable_counts_as_zero(self):
        doc = update({"$inc": {"count": "many"}})({"count": "lots"})
        assert doc == {"count": 0}


class TestOperatorOrder:
    """Operators run as $set, $unset, $rename, $push, $pull, $inc."""

    def test_set_then_rename(self):
        spec = {"$rename": {"a": "b"}, "$set": {"a": 1}}
        assert update(spec)({}) == {"b": 1}

    def test_set_then_unset(self):
        spec = {"$unset": {"a": 1}, "$set": {"a": 1, "c": 3}}
        assert update(spec)({}) == {"c": 3}

    def test_push_then_pull(self):
        spec = {"$pull": {"tags": "x"}, "$push": {"tags": "x"}}
        assert update(spec)({"tags": ["x", "y"]}) == {"tags": ["y"]}

    def test_rename_then_inc(self):
        spec = {"$inc": {"total": 1}, "$rename": {"count": "total"}}
        assert update(spec)({"count": "41"}) == {"total": 42}


class TestMutatorReuse:
    """Test that a compiled mutator gives the same result every time."""

    def test_set_list_then_push(self):
        mutate = update({"$set": {"tags": []}, "$push": {"tags": "x"}})
        assert mutate({}) == {"tags": ["x"]}
        assert mutate({}) == {"tags": ["x"]}

    def test_set_value_not_shared_with_documents(self):
        mutate = update({"$set": {"meta": {"seen": 0}}})
        first = mutate({})
        first["meta"]["seen"] = 5
        assert mutate({}) == {"meta": {"seen": 0}}

    def test_pushed_value_not_shared_with_documents(self):
        mutate = update({"$push": {"history": {"event": "read"}}})
        first = mutate({})
        first["history"][0]["event"] = "changed"
        assert mutate({}) == {"history": [{"event": "read"}]}


class TestToNumber:
    """Test numeric parsing used by $inc."""

    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        (2.5, 2.5),
        ("3", 3),
        (" 7", 7),
        ("-4", -4),
        ("2.5kg", 2.5),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("abc", 0),
        ("", 0),
        (None, 0),
        (True, 0),
        ([1], 0),
        (float("nan"), 0),
        (float("inf"), 0),
        ("Infinity", 0),
    ])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    def test_integer_strings_stay_integers(self):
        assert isinstance(to_number("12"), int)
