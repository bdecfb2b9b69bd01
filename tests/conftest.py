"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def google_docs_html() -> str:
    return _read_fixture("google_docs.html")


@pytest.fixture
def spreadsheet_html() -> str:
    return _read_fixture("spreadsheet.html")


@pytest.fixture
def layout_email_html() -> str:
    return _read_fixture("layout_email.html")


@pytest.fixture
def document_export_text() -> str:
    return _read_fixture("document_export.txt")


@pytest.fixture
def data_table_html() -> str:
    return (
        "<table>"
        "<tr><td>Name</td><td>Age</td><td>City</td></tr>"
        "<tr><td>Alice</td><td>30</td><td>Paris</td></tr>"
        "<tr><td>Bob</td><td>25</td><td>Oslo</td></tr>"
        "</table>"
    )


@pytest.fixture
def tsv_text() -> str:
    return "Name\tAge\nAlice\t30\nBob\t25"
