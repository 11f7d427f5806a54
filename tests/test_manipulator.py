import re

import pytest

from creatable.input.definition_loader import parse_definition
from creatable.pipeline.manipulator import Manipulator, manipulate
from creatable.utils.exceptions import (
    DefinitionFormatError,
    DuplicateNameError,
    MissingNameError,
)


def test_column_gets_back_reference_to_its_table():
    doc = {"tables": [{"name": "t1", "columns": [{"name": "id"}]}]}

    manipulate(doc)

    table = doc["tables"][0]
    assert table["columns"][0]["table"] is table


def test_default_column_values_are_applied_by_name():
    doc = {
        "defaults": {"columns": [{"name": "id", "type": "INTEGER"}]},
        "tables": [{"name": "t1", "columns": [{"name": "id"}]}],
    }

    manipulate(doc)

    assert doc["tables"][0]["columns"][0]["type"] == "INTEGER"


def test_explicit_column_values_win_over_defaults():
    doc = {
        "defaults": {"columns": [{"name": "id", "type": "INTEGER", "not-null": True}]},
        "tables": [{"name": "t1", "columns": [{"name": "id", "type": "BIGINT"}]}],
    }

    manipulate(doc)

    column = doc["tables"][0]["columns"][0]
    assert column["type"] == "BIGINT"
    assert column["not-null"] is True


def test_explicit_none_is_not_replaced_by_default():
    doc = {
        "defaults": {"columns": [{"name": "id", "desc": "primary key"}]},
        "tables": [{"name": "t1", "columns": [{"name": "id", "desc": None}]}],
    }

    manipulate(doc)

    assert doc["tables"][0]["columns"][0]["desc"] is None


def test_reapplying_defaults_keeps_explicit_fields():
    doc = {
        "defaults": {"columns": [{"name": "id", "type": "INTEGER", "width": 11}]},
        "tables": [{"name": "t1", "columns": [{"name": "id", "width": 5}]}],
    }

    manipulate(doc)
    Manipulator._apply_defaults(doc["tables"][0]["columns"][0], {"name": "id", "type": "TEXT", "width": 99})

    column = doc["tables"][0]["columns"][0]
    assert column["type"] == "INTEGER"
    assert column["width"] == 5


def test_defaults_are_not_mutated():
    default_id = {"name": "id", "type": "INTEGER"}
    doc = {
        "defaults": {"columns": [default_id]},
        "tables": [{"name": "t1", "columns": [{"name": "id"}]}],
    }

    manipulate(doc)

    assert default_id == {"name": "id", "type": "INTEGER"}


def test_column_without_ref_or_default_only_gains_table():
    column = {"name": "title", "type": "VARCHAR", "width": 100}
    doc = {
        "defaults": {"columns": [{"name": "id", "type": "INTEGER"}]},
        "tables": [{"name": "t1", "columns": [column]}],
    }

    manipulate(doc)

    assert set(column) == {"name", "type", "width", "table"}
    assert column["type"] == "VARCHAR"
    assert column["width"] == 100


def test_ref_copies_type_and_width():
    ref = {"name": "id", "type": "INTEGER", "width": 11}
    doc = {"tables": [{"name": "t1", "columns": [{"name": "user_id", "ref": ref}]}]}

    manipulate(doc)

    column = doc["tables"][0]["columns"][0]
    assert column["type"] == "INTEGER"
    assert column["width"] == 11


def test_ref_keeps_existing_width_but_overwrites_type():
    ref = {"name": "id", "type": "INTEGER", "width": 11}
    column = {"name": "user_id", "type": "TEXT", "width": 5, "ref": ref}
    doc = {"tables": [{"name": "t1", "columns": [column]}]}

    manipulate(doc)

    assert column["type"] == "INTEGER"
    assert column["width"] == 5


def test_ref_overwrites_type_applied_from_defaults():
    doc = {
        "defaults": {"columns": [{"name": "owner", "type": "TEXT"}]},
        "tables": [{"name": "t1", "columns": [
            {"name": "owner", "ref": {"name": "id", "type": "INTEGER"}},
        ]}],
    }

    manipulate(doc)

    column = doc["tables"][0]["columns"][0]
    assert column["type"] == "INTEGER"
    assert "width" not in column


def test_ref_to_column_of_another_table():
    users_id = {"name": "id", "type": "INTEGER", "width": 11}
    doc = {"tables": [
        {"name": "users", "columns": [users_id]},
        {"name": "posts", "columns": [{"name": "user_id", "ref": users_id}]},
    ]}

    manipulate(doc)

    user_id = doc["tables"][1]["columns"][0]
    assert user_id["ref"]["table"] is doc["tables"][0]
    assert user_id["table"] is doc["tables"][1]
    assert (user_id["type"], user_id["width"]) == ("INTEGER", 11)


def test_null_ref_is_ignored():
    column = {"name": "id", "type": "TEXT", "ref": None}
    doc = {"tables": [{"name": "t1", "columns": [column]}]}

    manipulate(doc)

    assert column["type"] == "TEXT"


def test_table_without_columns_is_valid():
    doc = {"tables": [{"name": "empty"}, {"name": "t1", "columns": [{"name": "id"}]}]}

    manipulate(doc)

    assert "columns" not in doc["tables"][0]


def test_empty_document_is_valid():
    doc = {}

    assert manipulate(doc) is doc


def test_missing_default_columns_never_raise():
    doc = {"defaults": {}, "tables": [{"name": "t1", "columns": [{"name": "id"}]}]}

    manipulate(doc)


def test_duplicate_table_name_raises():
    doc = {"tables": [{"name": "t1"}, {"name": "t1"}]}

    with pytest.raises(DuplicateNameError, match="t1") as exc:
        manipulate(doc)

    assert exc.value.scope == "table"
    assert exc.value.name == "t1"


def test_missing_table_name_raises():
    with pytest.raises(MissingNameError) as exc:
        manipulate({"tables": [{"columns": []}]})

    assert exc.value.scope == "table"


def test_empty_table_name_counts_as_missing():
    with pytest.raises(MissingNameError):
        manipulate({"tables": [{"name": ""}]})


def test_missing_column_name_mentions_table():
    doc = {"tables": [{"name": "t1", "columns": [{"type": "INTEGER"}]}]}

    with pytest.raises(MissingNameError, match="t1") as exc:
        manipulate(doc)

    assert exc.value.scope == "column"
    assert exc.value.table == "t1"


def test_duplicate_column_in_same_table_raises():
    doc = {"tables": [{"name": "t1", "columns": [{"name": "id"}, {"name": "id"}]}]}

    with pytest.raises(DuplicateNameError, match=r"t1\.id") as exc:
        manipulate(doc)

    assert exc.value.table == "t1"


def test_same_column_name_in_different_tables_is_allowed():
    doc = {"tables": [
        {"name": "t1", "columns": [{"name": "id"}]},
        {"name": "t2", "columns": [{"name": "id"}]},
    ]}

    manipulate(doc)


def test_missing_default_column_name_raises():
    doc = {"defaults": {"columns": [{"type": "INTEGER"}]}, "tables": []}

    with pytest.raises(MissingNameError) as exc:
        manipulate(doc)

    assert exc.value.scope == "default column"


def test_duplicate_default_column_name_raises():
    doc = {"defaults": {"columns": [{"name": "id"}, {"name": "id"}]}}

    with pytest.raises(DuplicateNameError, match="id"):
        manipulate(doc)


def test_failure_stops_at_first_violation():
    doc = {"tables": [
        {"name": "t1", "columns": [{"name": "id"}]},
        {"name": "t1", "columns": [{"name": "id"}]},
    ]}

    with pytest.raises(DuplicateNameError):
        manipulate(doc)

    # earlier tables stay manipulated, later ones are untouched
    assert "table" in doc["tables"][0]["columns"][0]
    assert "table" not in doc["tables"][1]["columns"][0]


def test_missing_table_name_points_at_its_position():
    doc = {"tables": [{"name": "t1"}, {"name": "t2"}, {"columns": []}]}

    with pytest.raises(MissingNameError, match=r"tables\[2\]: table name is missing\.") as exc:
        manipulate(doc)

    assert exc.value.location == "tables[2]"


def test_missing_default_column_name_points_at_its_position():
    doc = {"defaults": {"columns": [{"name": "id"}, {"type": "TEXT"}]}}

    with pytest.raises(MissingNameError, match=r"defaults\.columns\[1\]"):
        manipulate(doc)


def test_missing_column_name_points_at_its_position():
    doc = {"tables": [{"name": "t1", "columns": [{"name": "id"}, {"type": "TEXT"}]}]}

    with pytest.raises(MissingNameError, match=r"t1\.columns\[1\]: column name is missing\."):
        manipulate(doc)


def test_ref_width_fills_explicit_none_width():
    column = {"name": "user_id", "width": None, "ref": {"name": "id", "type": "INTEGER", "width": 11}}

    manipulate({"tables": [{"name": "t1", "columns": [column]}]})

    assert column["width"] == 11


def test_ref_without_width_keeps_existing_width():
    column = {"name": "user_id", "width": 5, "ref": {"name": "id", "type": "INTEGER"}}

    manipulate({"tables": [{"name": "t1", "columns": [column]}]})

    assert column["width"] == 5
    assert column["type"] == "INTEGER"


@pytest.mark.parametrize("text, location", [
    ("tables:\n  - t1\n", "tables[0]"),
    ("tables:\n  - name: t1\n    columns:\n      -\n", "t1.columns[0]"),
    ("tables:\n  - name: t1\n    columns: {name: id}\n", "t1.columns"),
    ("tables:\n  - name: t1\n    columns:\n      - {name: uid, ref: users.id}\n", "t1.uid.ref"),
    ("tables:\n  - name: [a, b]\n", "tables[0]"),
    ("defaults:\n  columns:\n    - id\n", "defaults.columns[0]"),
    ("defaults:\n  columns: {name: id}\n", "defaults.columns"),
])
def test_malformed_entries_raise_definition_format_error(text, location):
    with pytest.raises(DefinitionFormatError, match=re.escape(location)):
        manipulate(parse_definition(text))


def test_non_list_tables_raise_definition_format_error():
    with pytest.raises(DefinitionFormatError, match="tables"):
        manipulate({"tables": "t1"})
