"""Tests for console rendering helpers."""

import io

import pytest
from rich.console import Console

from scaffoldcli import output
from scaffoldcli.registry.types import Change, Project


@pytest.fixture
def out(monkeypatch) -> io.StringIO:
    buf = io.StringIO()
    monkeypatch.setattr(output, "console", Console(file=buf, width=120, color_system=None))
    return buf


def test_prefixed_messages(out):
    output.info("ready")
    output.warn("careful")
    output.error("broken [brackets]")
    assert out.getvalue().splitlines() == [
        "INFO: ready",
        "WARN: careful",
        "ERROR: broken [brackets]",
    ]


def test_grid_aligns_first_column(out):
    output.grid([("a", "/x"), ("longer", "/y")])
    assert out.getvalue().splitlines() == ["a         /x", "longer    /y"]


def test_grid_empty_prints_nothing(out):
    output.grid([])
    assert out.getvalue() == ""


def test_changes(out):
    output.changes(
        [
            Change("+", "new", Project(path="/n")),
            Change("-", "old", Project(path="/o")),
        ]
    )
    assert out.getvalue().splitlines() == ["+ new    /n", "- old    /o"]


def test_result_summary(out):
    output.result(2, ["first failure", "second failure"])
    assert out.getvalue().splitlines() == [
        "INFO: 2 success, 2 fail.",
        "ERROR: first failure",
        "ERROR: second failure",
    ]


def test_status_hidden_when_not_a_terminal(out):
    output.status("Downloading...")
    output.clear()
    assert out.getvalue() == ""
