import json
from pathlib import Path

import pytest

from csvrecon import config
from csvrecon.config import ConfigurationError
from csvrecon.models import MatchRule


def write_rule(tmp_path: Path, payload) -> Path:
    path = tmp_path / "rule.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return path


def test_load_match_rule_reads_sample_document(tmp_path: Path):
    path = write_rule(tmp_path, {"matchingFields": ["id", "email"], "caseSensitive": True, "trim": False})

    rule = config.load_match_rule(path)
    assert rule == MatchRule(("id", "email"), case_sensitive=True, trim=False)


def test_defaults_and_case_insensitive_keys(tmp_path: Path):
    path = write_rule(tmp_path, {"MatchingFields": ["id"]})

    rule = config.load_match_rule(path)
    assert rule.fields == ("id",)
    assert rule.case_sensitive is False
    assert rule.trim is True


@pytest.mark.parametrize(
    "fields, message",
    [
        ([], "At least one"),
        (["id", " "], "empty or whitespace"),
        (["Id", "ID"], "Duplicate matching fields"),
    ],
)
def test_invalid_field_lists_are_rejected(fields, message):
    with pytest.raises(ConfigurationError, match=message):
        config.parse_match_rule({"matchingFields": fields})


def test_missing_file_is_a_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="not found"):
        config.load_match_rule(tmp_path / "absent.json")


@pytest.mark.parametrize("text", ["", "   ", "{not json"])
def test_empty_or_broken_documents_are_rejected(tmp_path: Path, text):
    with pytest.raises(ConfigurationError):
        config.load_match_rule(write_rule(tmp_path, text))


def test_non_list_fields_are_rejected():
    with pytest.raises(ConfigurationError):
        config.parse_match_rule({"matchingFields": "id"})


@pytest.mark.parametrize("delimiter", ["", ",,", '"'])
def test_validate_config_rejects_bad_delimiters(make_config, delimiter):
    with pytest.raises(ConfigurationError):
        config.validate_config(make_config(delimiter=delimiter))


def test_sample_configs_are_valid():
    samples = Path(__file__).resolve().parents[1] / "samples" / "config"
    for path in samples.glob("*.json"):
        assert config.load_match_rule(path).fields == ("CustomerId", "Email")


@pytest.mark.parametrize(
    "name, value",
    [
        ("caseSensitive", "false"),
        ("caseSensitive", None),
        ("caseSensitive", 0),
        ("trim", "true"),
        ("trim", 1),
    ],
)
def test_non_boolean_flags_are_rejected(name, value):
    with pytest.raises(ConfigurationError, match=name):
        config.parse_match_rule({"matchingFields": ["id"], name: value})


def test_comments_and_trailing_commas_are_accepted(tmp_path: Path):
    text = """
    {
      // fields used to build the key
      "matchingFields": ["id", "url",],  /* trailing comma above */
      "caseSensitive": true,
      "trim": false,
    }
    """
    rule = config.load_match_rule(write_rule(tmp_path, text))
    assert rule == MatchRule(("id", "url"), case_sensitive=True, trim=False)


def test_comment_markers_inside_strings_are_kept():
    text = '{"matchingFields": ["http://x", "a,]"], "trim": true}'
    assert config.strip_json_extensions(text) == text
