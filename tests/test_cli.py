"""Tests for the rulextract command line."""
from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from rulextract import cli


REFERENCE = "2013-02-12T04:30:00"


def _run(capsys: pytest.CaptureFixture[str], argv: list[str]) -> tuple[int, object]:
    code = cli.main(argv)
    out = capsys.readouterr().out
    return code, orjson.loads(out) if out else None


class TestCli:
    def test_single_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        code, payload = _run(capsys, ["tomorrow at 5pm", "--reference", REFERENCE])
        assert code == 0
        assert payload["text"] == "tomorrow at 5pm"
        [entity] = payload["results"]
        assert entity["name"] == "time"
        assert entity["value"]["value"] == "2013-02-13T17:00:00"

    def test_dimension_filter(self, capsys: pytest.CaptureFixture[str]) -> None:
        code, payload = _run(capsys, ["in 2 hours", "--reference", REFERENCE, "--dim", "duration"])
        assert code == 0
        assert [e["name"] for e in payload["results"]] == ["duration"]

    def test_details(self, capsys: pytest.CaptureFixture[str]) -> None:
        code, payload = _run(capsys, ["from 2:30 - 5:50", "--reference", REFERENCE, "--details"])
        assert code == 0
        details = payload["details"]
        assert details["passes"][0]["index"] == 0
        assert set(details["passes"][0]) == {"index", "produced", "rules_considered", "rules_seeded", "duration"}
        assert len(details["candidates"]) > len(payload["results"])

    def test_input_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        source = tmp_path / "texts.jsonl"
        source.write_bytes(b'{"text": "3rd"}\n{"text": "xyzzy"}\n')
        code, payload = _run(capsys, ["--input", str(source), "--reference", REFERENCE])
        assert code == 0
        assert [p["text"] for p in payload] == ["3rd", "xyzzy"]
        assert payload[1]["results"] == []

    def test_bad_reference(self, capsys: pytest.CaptureFixture[str]) -> None:
        code, payload = _run(capsys, ["now", "--reference", "yesterday-ish"])
        assert code == 2
        assert payload is None

    def test_requires_input(self) -> None:
        with pytest.raises(SystemExit):
            cli.main([])
