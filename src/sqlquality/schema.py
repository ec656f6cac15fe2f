"""
Per-table schema metadata consumed by the suggestion mapper and advisor.

The shapes mirror what information_schema returns for a table:
- columns: information_schema.columns rows
- indexes: information_schema.statistics rows
- status: information_schema.tables size statistics

Introspecting a live database is outside this package; callers supply the
metadata (typically a JSON/YAML file produced by their own tooling).
Table names are used as given and never validated here.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sqlquality.exceptions import ParseError


class SchemaColumn(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    column_name: str
    data_type: str | None = None
    column_type: str | None = None
    is_nullable: str | None = None
    column_key: str | None = None
    column_default: str | None = None
    extra: str | None = None


class SchemaIndex(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    index_name: str
    column_name: str
    non_unique: int | None = None
    seq_in_index: int | None = None
    cardinality: int | None = None


class TableStatus(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    table_rows: int | None = None
    data_length: int | None = None
    index_length: int | None = None
    auto_increment: int | None = None
    create_time: str | None = None
    update_time: str | None = None


class SchemaInfo(BaseModel):
    """Columns, indexes and size statistics of one table."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[SchemaColumn, ...] = ()
    indexes: tuple[SchemaIndex, ...] = ()
    status: TableStatus = Field(default_factory=TableStatus)

    def index_names(self) -> list[str]:
        """Distinct index names, in seq order of first appearance."""
        return list(dict.fromkeys(index.index_name for index in self.indexes))

    def index_columns(self, index_name: str) -> list[str]:
        entries = [i for i in self.indexes if i.index_name == index_name]
        entries.sort(key=lambda i: i.seq_in_index or 0)
        return [i.column_name for i in entries]

    def indexed_columns(self) -> set[str]:
        return {index.column_name for index in self.indexes}

    def column_names(self) -> list[str]:
        return [column.column_name for column in self.columns]


def load_schema_info(source: str | Path | dict[str, Any]) -> dict[str, SchemaInfo]:
    """
    Load a {table: SchemaInfo} map from a JSON/YAML file or a decoded dict.

    Raises:
        ParseError: If the file cannot be read or does not match the shape
    """
    if isinstance(source, dict):
        data: Any = source
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except OSError as e:
            raise ParseError(f"Cannot read schema file: {path}", detail=str(e), source="file") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ParseError(f"Failed to decode schema file: {path}", detail=str(e), source="json_decode") from e

    if not isinstance(data, dict):
        raise ParseError("Schema info must map table names to metadata", source="structure")

    try:
        return {str(table): SchemaInfo.model_validate(info) for table, info in data.items()}
    except ValidationError as e:
        raise ParseError("Schema info does not match the expected shape", detail=str(e), source="validation") from e
