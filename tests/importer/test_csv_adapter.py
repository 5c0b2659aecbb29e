from __future__ import annotations

import io

import pytest

from frs_users.importer.adapters import CSVHeaderError, ProfileCSVAdapter


def test_header_is_normalized_and_rows_are_keyed():
    handle = io.StringIO('\ufeffFirst Name,Last Name,E-mail\nJane,Doe,jane@x.com\n"Smith, Jr",John,john@x.com\n')
    adapter = ProfileCSVAdapter(handle)

    rows = list(adapter.iter_rows())

    assert adapter.header == ("first_name", "last_name", "e_mail")
    assert rows[0].values == {"first_name": "Jane", "last_name": "Doe", "e_mail": "jane@x.com"}
    assert rows[1].values["first_name"] == "Smith, Jr"
    assert [row.sequence_number for row in rows] == [1, 2]
    assert [row.source_line for row in rows] == [2, 3]


def test_malformed_rows_are_dropped_and_counted():
    handle = io.StringIO("first_name,last_name,email\nJane,Doe,jane@x.com\nBroken,Row\nToo,Many,Cells,Here\nJohn,Smith,\n")
    adapter = ProfileCSVAdapter(handle)

    rows = list(adapter.iter_rows())

    assert [row.values["first_name"] for row in rows] == ["Jane", "John"]
    assert adapter.statistics.rows_processed == 2
    assert adapter.statistics.rows_skipped_malformed == 2


def test_empty_file_raises_header_error():
    with pytest.raises(CSVHeaderError, match="Could not read header row"):
        list(ProfileCSVAdapter(io.StringIO("")).iter_rows())


def test_blank_header_raises_header_error():
    with pytest.raises(CSVHeaderError):
        list(ProfileCSVAdapter(io.StringIO(",,\nJane,Doe,x\n")).iter_rows())
