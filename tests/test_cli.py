"""Tests for the ``python -m pagedistill`` command line."""

from __future__ import annotations

import io
import json

import pytest

from pagedistill.__main__ import EXIT_GUARD_TRIPPED, EXIT_INPUT_ERROR, EXIT_OK, main

_HTML = (
    "<html><head><title>Saved Page</title></head><body>"
    "<nav><a href='/'>Home</a></nav>"
    "<article><p>Saved content, with a comma.</p></article>"
    "</body></html>"
)


@pytest.fixture
def page(tmp_path):
    path = tmp_path / "saved.html"
    path.write_text(_HTML, encoding="utf-8")
    return path


def test_markdown_to_stdout(page, capsys):
    assert main([str(page)]) == EXIT_OK
    out = capsys.readouterr().out
    assert out == "Saved content, with a comma.\n"


def test_json_output(page, capsys):
    code = main([str(page), "--json", "--url", "https://Example.com/blog/saved?utm_source=x"])
    assert code == EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload == {
        "title": "Saved Page",
        "source": "https://example.com/blog/saved",
        "format": "html",
        "content": "Saved content, with a comma.",
    }


def test_json_keeps_unicode(tmp_path, capsys):
    path = tmp_path / "jp.html"
    path.write_text("<article><h1>日本語</h1><p>本文です。</p></article>", encoding="utf-8")
    assert main([str(path), "--json"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "日本語" in out
    assert json.loads(out)["title"] == "日本語"


def test_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(_HTML))
    assert main(["-", "--json"]) == EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["title"] == "Saved Page"
    assert payload["source"] == ""


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "absent.html")]) == EXIT_INPUT_ERROR
    assert "Cannot read" in capsys.readouterr().err


def test_bad_config(page, tmp_path, capsys):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("default:\n  no_such_knob: 1\n", encoding="utf-8")
    assert main([str(page), "--config", str(cfg)]) == EXIT_INPUT_ERROR
    assert "no_such_knob" in capsys.readouterr().err


def test_config_applied(tmp_path, capsys):
    page = tmp_path / "deep.html"
    page.write_text("<div><div><div><div><p>Deep text.</p></div></div></div></div>", encoding="utf-8")
    cfg = tmp_path / "shallow.yaml"
    cfg.write_text("default:\n  max_depth: 3\n", encoding="utf-8")

    assert main([str(page), "--config", str(cfg)]) == EXIT_OK
    assert "Deep text." in capsys.readouterr().out

    assert main([str(page), "--config", str(cfg), "--strict"]) == EXIT_GUARD_TRIPPED
    assert "max_depth" in capsys.readouterr().err
