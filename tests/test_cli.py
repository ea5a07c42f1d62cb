import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import bsel

BASIC_YML = os.path.join(os.path.dirname(__file__), "data", "basic.yml")


def read_lines(text):
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def test_selects_matching_entries(capsys):
    assert bsel.main(["article > proceedings", BASIC_YML]) == 0
    captured = capsys.readouterr()
    results = read_lines(captured.out)
    assert [r["key"] for r in results] == ["zygos", "double-proc"]
    assert results[1] == {"key": "double-proc", "type": "article", "title": "One Paper, Two Venues"}
    assert "Selected 2 of 21 entries" in captured.err


def test_bindings_option(capsys):
    code = "a:article > (b:conference & c:(video|blog|web))"
    assert bsel.main([code, BASIC_YML, "--bindings"]) == 0
    (result,) = read_lines(capsys.readouterr().out)
    assert result["key"] == "wwdc-network"
    assert result["bindings"]["a"]["key"] == "wwdc-network"
    assert result["bindings"]["b"]["type"] == "conference"
    assert result["bindings"]["c"]["type"] == "video"


def test_canonical_option(capsys):
    assert bsel.main(["anthos | video", BASIC_YML, "--canonical"]) == 0
    results = {r["key"]: r for r in read_lines(capsys.readouterr().out)}
    assert results["gedanken"]["canonical"]["type"] == "anthology"
    assert results["terminator-2"]["canonical"] is None


def test_pretty_print_to_file(tmp_path, capsys):
    out_file = tmp_path / "out.json"
    assert bsel.main(["*[url]", BASIC_YML, "--pretty-print", "-o", str(out_file)]) == 0
    assert capsys.readouterr().out == ""
    data = json.loads(out_file.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert {r["key"] for r in data} == {
        "omarova-libra",
        "science-e-issue",
        "oiseau",
        "electronic-music",
        "camb",
        "mattermost",
    }


def test_no_matches(capsys):
    assert bsel.main(["thesis", BASIC_YML]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Selected 0 of 21 entries" in captured.err


def test_invalid_selector_exits_with_2(capsys):
    assert bsel.main(["book > magazine", BASIC_YML]) == 2
    err = capsys.readouterr().err
    assert "unknown entry type" in err
    assert "       ^" in err


def test_duplicate_key_library_exits_with_2(tmp_path, capsys):
    lib = tmp_path / "dup.yml"
    lib.write_text("a:\n    type: Book\na:\n    type: Article\n", encoding="utf-8")
    assert bsel.main(["*", str(lib)]) == 2
    assert "duplicate key a" in capsys.readouterr().err


def test_missing_library_exits_with_2(tmp_path, capsys):
    assert bsel.main(["*", str(tmp_path / "missing.yml")]) == 2
    assert "Cannot load library" in capsys.readouterr().err


def test_version(capsys):
    assert bsel.main(["--version"]) == 0
    out = capsys.readouterr().out
    assert "bibsel:" in out
    assert "selector language:" in out


def test_impossible_date_exits_with_2(tmp_path, capsys):
    lib = tmp_path / "bad-date.yml"
    lib.write_text("a:\n    type: Article\n    date: 2019-13-01\n", encoding="utf-8")
    assert bsel.main(["*", str(lib)]) == 2
    assert "Cannot load library" in capsys.readouterr().err


def test_deep_selector_exits_with_2(capsys):
    assert bsel.main(["!" * 2000 + "article", BASIC_YML]) == 2
    assert "selector nested too deeply" in capsys.readouterr().err
