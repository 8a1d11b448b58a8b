import json

import pytest

from archnorm.cli.main import build_parser, main

RECORD = {
    "ochre": {
        "uuid": "r1",
        "resource": {
            "uuid": "r1",
            "identification": {"label": {"content": [{"lang": "eng", "string": "Tablet"}]}},
            "description": {"content": [{"lang": "eng", "string": [{"text": "Fine", "rend": "bold"}]}]},
        },
    }
}

XML = b"""<ochre uuid="r1"><resource uuid="r1"><identification><label>Tablet</label></identification></resource></ochre>"""


def _write_json(tmp_path, payload) -> str:
    path = tmp_path / "record.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_normalize_json(tmp_path, capsys) -> None:
    rc = main(["normalize", _write_json(tmp_path, RECORD)])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["uuid"] == "r1"
    assert out["item"]["category"] == "resource"
    assert out["item"]["identification"]["label"] == {"eng": "Tablet"}
    assert out["item"]["description"] == {"eng": "Fine"}


def test_normalize_rich_text(tmp_path, capsys) -> None:
    rc = main(["normalize", _write_json(tmp_path, RECORD), "--rich-text", "--pretty"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["item"]["description"] == {"eng": "**Fine**"}


def test_normalize_xml_by_extension(tmp_path, capsys) -> None:
    path = tmp_path / "record.xml"
    path.write_bytes(XML)
    assert main(["normalize", str(path)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["item"]["identification"]["label"] == {"eng": "Tablet"}


def test_normalize_xml_flag(tmp_path, capsys) -> None:
    path = tmp_path / "record.dat"
    path.write_bytes(XML)
    assert main(["normalize", str(path), "--xml"]) == 0


def test_missing_file(tmp_path, capsys) -> None:
    assert main(["normalize", str(tmp_path / "nope.json")]) == 2
    assert "file not found" in capsys.readouterr().err


def test_directory_is_not_a_file(tmp_path, capsys) -> None:
    assert main(["normalize", str(tmp_path)]) == 2
    assert "not a regular file" in capsys.readouterr().err


def test_invalid_json(tmp_path, capsys) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    assert main(["normalize", str(path)]) == 2
    assert "invalid JSON" in capsys.readouterr().err


def test_normalization_failure_exit_code(tmp_path, capsys) -> None:
    rc = main(["normalize", _write_json(tmp_path, RECORD), "--category", "concept"])
    assert rc == 2
    assert 'missing "concept" key' in capsys.readouterr().err


def test_language_failure_exit_code(tmp_path, capsys) -> None:
    rc = main(["normalize", _write_json(tmp_path, RECORD), "--languages", "fra"])
    assert rc == 2
    assert "Language content not found" in capsys.readouterr().err


def test_parser_requires_subcommand() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_serve_defaults() -> None:
    args = build_parser().parse_args(["serve"])
    assert args.host == "127.0.0.1"
    assert args.port == 8080
    assert args.log_level == "info"
