import subprocess

import pytest

from proptraverse.utils import formatter as formatter_module
from proptraverse.utils.formatter import ExpandedTypeFormatter, needs_formatting, unwrap_formatted


def _reference(name, expanded):
    return {"name": name, "typeInfo": {"kind": "reference", "type": name, "expanded": expanded}}


class FakeRun:
    def __init__(self, stdout=None, error=None):
        self.stdout = stdout
        self.error = error
        self.calls = []

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        if self.error is not None:
            raise self.error
        text = kwargs["input"]
        return subprocess.CompletedProcess(command, 0, stdout=self.stdout(text) if self.stdout else "", stderr="")


@pytest.mark.parametrize("text, expected", [
    ("ButtonSize", False),
    ("React.ReactNode", False),
    ("", False),
    (None, False),
    ('"sm" | "md"', True),
    ("{ a: string; }", True),
])
def test_needs_formatting(text, expected):
    assert needs_formatting(text) is expected


def test_unwrap_formatted():
    assert unwrap_formatted('type t = "sm" | "md";\n') == '"sm" | "md"'
    assert unwrap_formatted("type t = {\n  a: string;\n};\n") == "{\n  a: string;\n}"


def test_format_props_rewrites_reference_expansions(monkeypatch):
    fake = FakeRun(stdout=lambda text: text.replace("{ a: string; }", "{\n  a: string;\n}") + "\n")
    monkeypatch.setattr(formatter_module.subprocess, "run", fake)
    props = [
        _reference("first", "{ a: string; }"),
        _reference("second", "{ a: string; }"),
        _reference("plain", "ButtonSize"),
        {"name": "count", "typeInfo": {"kind": "primitive", "type": "number"}},
    ]
    ExpandedTypeFormatter("prettier --parser babel-ts", cwd="/repo", max_workers=2).format_props(props)

    assert props[0]["typeInfo"]["expanded"] == "{\n  a: string;\n}"
    assert props[1]["typeInfo"]["expanded"] == "{\n  a: string;\n}"
    assert props[2]["typeInfo"]["expanded"] == "ButtonSize"
    assert len(fake.calls) == 1
    command, kwargs = fake.calls[0]
    assert command == ["prettier", "--parser", "babel-ts"]
    assert kwargs["input"] == "type t = { a: string; };"
    assert kwargs["cwd"] == "/repo"
    assert kwargs["check"] is True


def test_results_are_memoized(monkeypatch):
    fake = FakeRun(stdout=lambda text: text + "\n")
    monkeypatch.setattr(formatter_module.subprocess, "run", fake)
    formatter = ExpandedTypeFormatter()
    assert formatter.format_type('"a" | "b"') == '"a" | "b"'
    assert formatter.format_type('"a" | "b"') == '"a" | "b"'
    assert len(fake.calls) == 1


@pytest.mark.parametrize("error", [
    subprocess.CalledProcessError(2, ["prettier"], stderr="SyntaxError"),
    subprocess.TimeoutExpired(["prettier"], 60),
    FileNotFoundError("prettier"),
])
def test_failures_keep_the_input(monkeypatch, capsys, error):
    monkeypatch.setattr(formatter_module.subprocess, "run", FakeRun(error=error))
    props = [_reference("size", '"sm" | "md"')]
    ExpandedTypeFormatter().format_props(props)
    assert props[0]["typeInfo"]["expanded"] == '"sm" | "md"'
    assert "Unable to format expanded type, keeping it as-is" in capsys.readouterr().out


def test_empty_output_keeps_the_input(monkeypatch):
    monkeypatch.setattr(formatter_module.subprocess, "run", FakeRun())
    assert ExpandedTypeFormatter().format_type("{ a: 1; }") == "{ a: 1; }"
