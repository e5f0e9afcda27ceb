import json

import pytest

from autofix_runner.core.services.lint_parser import parse_lint_output, parse_lint_payload

from fakes import cookstyle_json, raw_offense


def test_parses_offenses_and_locations():
    text = cookstyle_json({
        "recipes/default.rb": [raw_offense(correctable=True, line=3, column=5)],
        "metadata.rb": [raw_offense(correctable=False, cop="Chef/Correctness/MetadataMissingName")],
    })
    result = parse_lint_output(text)

    assert result.error is None
    assert result.total_count == 2
    first = result.files[0].offenses[0]
    assert first.path == "recipes/default.rb"
    assert first.line == 3
    assert first.column == 5
    assert first.correctable is True
    assert result.manual_offenses()[0].cop_name == "Chef/Correctness/MetadataMissingName"


def test_missing_correctable_is_manual():
    off = raw_offense()
    del off["correctable"]
    result = parse_lint_output(cookstyle_json({"a.rb": [off]}))
    assert result.manual_only_count == 1
    assert result.auto_correctable_count == 0


def test_non_bool_correctable_is_manual():
    result = parse_lint_output(cookstyle_json({"a.rb": [raw_offense(correctable="yes")]}))
    assert result.manual_only_count == 1


def test_no_files_is_clean():
    result = parse_lint_output(cookstyle_json({}))
    assert result.error is None
    assert result.is_clean


def test_files_without_offenses_are_kept():
    result = parse_lint_output(cookstyle_json({"a.rb": [], "b.rb": [raw_offense()]}))
    assert [f.path for f in result.files] == ["a.rb", "b.rb"]
    assert result.total_count == 1


def test_summary_mismatch_logs_warning(caplog):
    parse_lint_output(cookstyle_json({"a.rb": [raw_offense()]}, offense_count=5))
    assert "reports 5 offenses but 1 were parsed" in caplog.text


@pytest.mark.parametrize("text", ["", "   \n", "Cookstyle crashed", "{not json", "[1, 2]", '{"files": "x"}'])
def test_unparsable_output_sets_error(text):
    result = parse_lint_output(text)
    assert result.error
    assert result.is_clean


def test_payload_rejects_non_object():
    with pytest.raises(ValueError):
        parse_lint_payload([])


def test_payload_rejects_bad_offense_list():
    with pytest.raises(ValueError):
        parse_lint_payload({"files": [{"path": "a.rb", "offenses": "none"}]})


def test_location_falls_back_to_line_and_column():
    off = {"cop_name": "X", "message": "m", "correctable": True, "location": {"line": 7, "column": 2}}
    result = parse_lint_payload(json.loads(json.dumps({"files": [{"path": "a.rb", "offenses": [off]}]})))
    assert (result.offenses()[0].line, result.offenses()[0].column) == (7, 2)
