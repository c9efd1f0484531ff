"""Unit tests for YAML datasource schema loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import PolyloadSchemaError
from core.schema import DocumentTablesKind, GraphKind, TableKind, ZipFileSchema
from core.schema_loader import load_datasource_schema, parse_datasource_schema

_SCHEMA_TEXT = """
label: social
file:
  type: zip
  path: https://example.org/social.zip
  files:
    - path: people.csv
      key: people
      format: csv
      columns:
        - {name: id, type: int, primary_key: true}
        - {name: born, type: date}
      csv_options: {separator: "|"}
    - path: knows.csv
      key: knows
      format: csv
      columns:
        - name: from
          type: int
          references: {key: people, column: id, behaves_unique: true}
        - {name: to, type: int, references: {key: people, column: id}}
        - {name: since, type: int}
    - path: posts.json
      key: posts
      format: ndjson
common:
  - {type: table, key: people}
relational_only:
  - type: document_tables
    key: posts
    root:
      name: posts
      columns: [{name: id, type: int}]
      children:
        - name: post_tags
          key: tags
          columns: [{name: tag}]
          from_parent: [{name: id, type: int}]
multimodel_only:
  - type: graph
    key: social_graph
    edges:
      - key: knows
        props: [since]
        from: {id_column: from, label: person, source: {key: people, column: id}}
        to: {id_column: to, label: person}
"""


def test_load_datasource_schema_reads_all_kinds(tmp_path: Path) -> None:
    """Loader should build typed files and kinds from YAML."""
    schema_path = tmp_path / "schema.yaml"
    schema_path.write_text(_SCHEMA_TEXT, encoding="utf-8")

    schema = load_datasource_schema(str(schema_path))

    assert isinstance(schema.file, ZipFileSchema)
    people = schema.data_file("people")
    assert people.csv_options.separator == "|"
    assert schema.data_file("knows").columns[0].reference.behaves_unique is True
    assert schema.common == (TableKind(key="people", columns=people.columns),)
    document_kind = schema.relational_only[0]
    assert isinstance(document_kind, DocumentTablesKind)
    assert document_kind.root.children[0].from_parent[0].name == "id"
    graph_kind = schema.multimodel_only[0]
    assert isinstance(graph_kind, GraphKind)
    assert graph_kind.edges[0].props == ("since",)
    assert graph_kind.edges[0].to_node.source is None


def test_load_datasource_schema_raises_for_missing_file(tmp_path: Path) -> None:
    """Loader should fail for a path that does not exist."""
    with pytest.raises(PolyloadSchemaError, match="does not exist"):
        load_datasource_schema(str(tmp_path / "missing.yaml"))


def test_load_datasource_schema_raises_for_invalid_yaml(tmp_path: Path) -> None:
    """Loader should wrap YAML syntax errors."""
    schema_path = tmp_path / "broken.yaml"
    schema_path.write_text("label: [unterminated\n", encoding="utf-8")

    with pytest.raises(PolyloadSchemaError, match="Failed to parse YAML"):
        load_datasource_schema(str(schema_path))


def test_parse_datasource_schema_rejects_unknown_fields() -> None:
    """Unknown keys should fail instead of being ignored."""
    payload = {
        "label": "x",
        "file": {"path": "a.csv", "key": "a", "format": "csv", "colums": []},
    }

    with pytest.raises(PolyloadSchemaError, match="unknown fields: colums"):
        parse_datasource_schema(payload)


def test_parse_datasource_schema_rejects_unsupported_format() -> None:
    """File formats are restricted to csv, xml and ndjson."""
    payload = {"label": "x", "file": {"path": "a.parquet", "key": "a", "format": "parquet"}}

    with pytest.raises(PolyloadSchemaError, match="Use one of: csv, xml, ndjson"):
        parse_datasource_schema(payload)


def test_parse_datasource_schema_validates_after_parsing() -> None:
    """Structural validation should run on parsed payloads."""
    payload = {
        "label": "x",
        "file": {
            "path": "pairs.csv",
            "key": "pairs",
            "format": "csv",
            "columns": [
                {"name": "a", "primary_key": True},
                {"name": "b", "primary_key": True},
            ],
        },
    }

    with pytest.raises(PolyloadSchemaError, match="composite primary key"):
        parse_datasource_schema(payload)
