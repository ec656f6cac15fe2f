"""
Tests for schema metadata loading.
"""

import json

import pytest

from sqlquality.exceptions import ParseError
from sqlquality.schema import SchemaInfo, load_schema_info

POSTS = {
    "columns": [
        {"column_name": "id", "data_type": "int", "column_type": "int", "is_nullable": "NO",
         "column_key": "PRI", "column_default": None, "extra": "auto_increment"},
        {"column_name": "status", "data_type": "varchar", "column_type": "varchar(20)",
         "is_nullable": "NO", "column_key": "", "column_default": None, "extra": ""},
    ],
    "indexes": [
        {"index_name": "idx_status_created", "column_name": "created_at", "non_unique": "1",
         "seq_in_index": "2", "cardinality": None},
        {"index_name": "PRIMARY", "column_name": "id", "non_unique": "0",
         "seq_in_index": "1", "cardinality": "1000"},
        {"index_name": "idx_status_created", "column_name": "status", "non_unique": "1",
         "seq_in_index": "1", "cardinality": "3"},
    ],
    "status": {"table_rows": 1000, "data_length": 16384, "index_length": 0,
               "auto_increment": 1001, "create_time": "2024-01-01 00:00:00", "update_time": None},
}


class TestSchemaInfo:
    """Tests for SchemaInfo helpers."""

    def test_information_schema_rows(self):
        info = SchemaInfo.model_validate(POSTS)
        assert info.column_names() == ["id", "status"]
        assert info.index_names() == ["idx_status_created", "PRIMARY"]
        assert info.index_columns("idx_status_created") == ["status", "created_at"]
        assert info.indexed_columns() == {"id", "status", "created_at"}
        assert info.status.table_rows == 1000

    def test_defaults(self):
        info = SchemaInfo()
        assert info.index_names() == []
        assert info.status.table_rows is None


class TestLoadSchemaInfo:
    """Tests for load_schema_info()."""

    def test_json_file(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"posts": POSTS}))
        schema = load_schema_info(path)
        assert list(schema) == ["posts"]

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("users:\n  status:\n    table_rows: 42\n")
        assert load_schema_info(path)["users"].status.table_rows == 42

    def test_dict(self):
        assert load_schema_info({"posts": POSTS})["posts"].column_names() == ["id", "status"]

    def test_table_names_not_validated(self):
        assert "weird-name; drop" in load_schema_info({"weird-name; drop": {}})

    def test_bad_shape(self):
        with pytest.raises(ParseError):
            load_schema_info({"posts": {"columns": "nope"}})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text("[]")
        with pytest.raises(ParseError):
            load_schema_info(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParseError):
            load_schema_info(tmp_path / "missing.json")
