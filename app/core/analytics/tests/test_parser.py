"""
Analytics Core — Upload Parsing
=================================
Run: pytest app/core/analytics/tests/ -v
"""

import io
import json
from datetime import datetime

import pandas as pd
import pytest

from app.core.analytics.models import ColumnType
from app.core.analytics.parser import (
    DatasetError,
    DatasetParseError,
    UnsupportedFileTypeError,
    file_extension,
    parse_file,
)


def make_csv(text):
    return text.encode("utf-8")


def make_xlsx(records):
    buffer = io.BytesIO()
    pd.DataFrame(records).to_excel(buffer, index=False)
    return buffer.getvalue()


class TestCsv:

    def test_header_and_dynamic_typing(self):
        ds = parse_file("sales.csv", make_csv("region,sales\nNorth,100\nSouth,250\n\n"))
        assert ds.name == "sales.csv"
        assert ds.row_count == 2
        assert ds.rows[0] == {"region": "North", "sales": 100}
        assert isinstance(ds.rows[0]["sales"], int)
        assert ds.column_type("sales") == ColumnType.NUMBER
        assert ds.column_type("region") == ColumnType.STRING

    def test_empty_cells_become_none(self):
        ds = parse_file("gaps.txt", make_csv("name,value\nA,\nB,2.5\n"))
        assert ds.rows[0]["value"] is None
        assert ds.rows[1]["value"] == 2.5
        assert ds.column("value").null_count == 1

    def test_header_only_has_no_rows(self):
        with pytest.raises(DatasetParseError):
            parse_file("empty.csv", make_csv("a,b\n"))

    def test_empty_file(self):
        with pytest.raises(DatasetParseError):
            parse_file("empty.csv", b"")


class TestJson:

    def test_top_level_array(self):
        payload = [{"a": 1, "b": "x"}, {"a": 2, "b": "y"}]
        ds = parse_file("data.json", json.dumps(payload).encode())
        assert ds.row_count == 2
        assert ds.rows[1] == {"a": 2, "b": "y"}

    def test_first_array_valued_key(self):
        payload = {"meta": {"source": "crm"}, "records": [{"a": 1}, {"a": 2}, {"a": 3}], "other": [1]}
        ds = parse_file("data.json", json.dumps(payload).encode())
        assert ds.row_count == 3

    def test_single_object_wrapped(self):
        ds = parse_file("one.json", json.dumps({"a": 1, "b": 2}).encode())
        assert ds.row_count == 1
        assert ds.rows[0] == {"a": 1, "b": 2}

    def test_malformed(self):
        with pytest.raises(DatasetParseError):
            parse_file("bad.json", b"{not json")

    def test_scalar_is_invalid_structure(self):
        with pytest.raises(DatasetParseError):
            parse_file("bad.json", b"42")

    def test_empty_array(self):
        with pytest.raises(DatasetParseError):
            parse_file("none.json", b"[]")


class TestExcel:

    def test_first_sheet(self):
        content = make_xlsx([
            {"product": "Widget", "price": 9.5, "sold": 3},
            {"product": "Gadget", "price": 12.0, "sold": None},
        ])
        ds = parse_file("Inventory.XLSX", content)
        assert ds.row_count == 2
        assert ds.rows[0]["product"] == "Widget"
        assert ds.rows[0]["price"] == 9.5
        assert ds.rows[1]["sold"] is None
        assert ds.column_type("price") == ColumnType.NUMBER

    def test_corrupt_workbook(self):
        with pytest.raises(DatasetParseError):
            parse_file("broken.xlsx", b"definitely not a zip archive")


class TestUnsupported:

    def test_unknown_extension(self):
        with pytest.raises(UnsupportedFileTypeError) as exc:
            parse_file("report.pdf", b"%PDF-1.4")
        assert exc.value.extension == "pdf"
        assert isinstance(exc.value, DatasetError)

    def test_no_extension(self):
        with pytest.raises(UnsupportedFileTypeError):
            parse_file("README", b"a,b\n1,2\n")

    def test_extension_is_case_insensitive(self):
        assert file_extension("Data.CSV") == "csv"
        assert file_extension("archive.tar.json") == "json"
        assert file_extension("noext") == ""

    def test_uploaded_at_passthrough(self):
        stamp = datetime(2024, 5, 1, 12, 0)
        ds = parse_file("t.csv", make_csv("a\n1\n2\n"), uploaded_at=stamp)
        assert ds.uploaded_at == stamp
