from __future__ import annotations

import json
from pathlib import Path

import pytest
from discovery_query.cli import build


def test_cli_parser_supports_common_options() -> None:
    parser = build.build_parser()
    args = parser.parse_args(
        [
            "--log-level",
            "debug",
            "--log-format",
            "JSON",
            "--log-destination",
            "stderr",
            "--config",
            "/tmp/config.toml",
            "--env-file",
            "/tmp/env",
            "year",
            "2019",
        ]
    )

    assert args.log_level == "DEBUG"
    assert args.log_format == "json"
    assert args.log_destination == "stderr"
    assert args.config == Path("/tmp/config.toml")
    assert args.env_file == Path("/tmp/env")
    assert args.command == "year"
    assert args.year == 2019


def test_cli_rejects_unknown_log_level(capsys: pytest.CaptureFixture[str]) -> None:
    parser = build.build_parser()
    with pytest.raises(SystemExit) as excinfo:
        parser.parse_args(["--log-level", "chatty", "year", "2019"])

    assert excinfo.value.code == 2
    assert "Invalid log level" in capsys.readouterr().err


def test_cli_help_exits_cleanly() -> None:
    parser = build.build_parser()
    with pytest.raises(SystemExit) as excinfo:
        parser.parse_args(["--help"])
    assert excinfo.value.code == 0


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["year", "2019"], "item-date:[20190101 TO 20191231]"),
        (["year-month", "2020", "2"], "item-date:[20200201 TO 20200229]"),
        (["year", "2019", "--field", "top-level-item-date"], "top-level-item-date:[20190101 TO 20191231]"),
        (["and", "cat", " ", "dog"], "cat AND dog"),
        (["or", "cat", "dog"], "cat OR dog"),
        (["paren-and", "cat", "dog"], "(cat) AND (dog)"),
        (["paren-or", "cat", "dog"], "(cat) OR (dog)"),
        (["not-or", "cat", "dog"], "NOT (cat OR dog)"),
        (["named-entities", "company", "company"], "named-entities:(company;*)"),
        (["markup-set", "Redactions"], 'markup-set:"Redactions"'),
        (["escape", "what?"], "what\\?"),
        (["tags", "a", "b"], 'tag:("a" OR "b")'),
    ],
)
def test_cli_prints_built_query(
    argv: list[str],
    expected: str,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = build.main(["--log-destination=stderr", *argv])

    assert exit_code == 0
    captured = capsys.readouterr()
    assert captured.out == expected + "\n"
    assert captured.err == ""


def test_cli_uses_configured_date_field(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("DISCOVERY_QUERY_DATE_FIELD", "audited-date")

    exit_code = build.main(["year-month", "2019", "6"])

    assert exit_code == 0
    assert capsys.readouterr().out == "audited-date:[20190601 TO 20190630]\n"


def test_cli_logs_built_query_in_json(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = build.main(
        ["--log-level=debug", "--log-format=json", "--log-destination=stderr", "tags", "hot"]
    )

    assert exit_code == 0
    captured = capsys.readouterr()
    assert captured.out == 'tag:("hot")\n'
    payloads = [json.loads(line) for line in captured.err.splitlines()]
    built = [payload for payload in payloads if payload["message"] == "Built query"]
    assert built[0]["command"] == "tags"
    assert built[0]["query"] == 'tag:("hot")'


@pytest.mark.parametrize("argv", [["year", "999"], ["year-month", "2019", "13"]])
def test_cli_reports_invalid_query_arguments(
    argv: list[str],
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = build.main(["--log-format=json", *argv])

    assert exit_code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    payload = json.loads(captured.err.strip())
    assert payload["message"] == "Invalid query arguments"
    assert payload["cli"] == "build"


def test_cli_reports_configuration_errors(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("DISCOVERY_QUERY_LOG_FORMAT", "xml")

    exit_code = build.main(["year", "2019"])

    assert exit_code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "configuration" in captured.err.lower()


def test_cli_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = build.main([])

    assert exit_code == 1
    assert "discovery-query" in capsys.readouterr().out
