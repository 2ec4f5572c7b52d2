import csv
import io

import pytest

from csvrecon.tokenizer import MalformedLineError, tokenize_line


@pytest.mark.parametrize("delimiter", [",", ";", "\t", "|"])
def test_unquoted_line_rejoins_to_original(delimiter):
    line = delimiter.join(["1", "foo", "", "bar baz", ""])
    assert delimiter.join(tokenize_line(line, delimiter)) == line


def test_empty_line_yields_single_empty_field():
    assert tokenize_line("", ",") == [""]


def test_line_without_delimiter_is_one_field():
    assert tokenize_line("abc", ",") == ["abc"]


def test_quoted_field_keeps_delimiter_and_escaped_quote():
    line = '1,"Hopper, Grace","say ""hi"""'
    assert tokenize_line(line, ",") == ["1", "Hopper, Grace", 'say "hi"']


def test_quote_in_middle_of_field_opens_quoting():
    assert tokenize_line('ab"c,d"e,f', ",") == ["abc,de", "f"]


def test_unterminated_quote_is_tolerated():
    assert tokenize_line('1,"open field, still open', ",") == ["1", "open field, still open"]


def test_unterminated_quote_raises_in_strict_mode():
    with pytest.raises(MalformedLineError):
        tokenize_line('2,bar"', ",", strict=True)


def test_strict_mode_accepts_balanced_quotes():
    assert tokenize_line('"a";"b"', ";", strict=True) == ["a", "b"]


@pytest.mark.parametrize(
    "value",
    ["plain", "with,comma", 'with "quote"', "with\nnewline", '",\n"'],
)
def test_escaped_field_tokenizes_back_to_original(value):
    buffer = io.StringIO()
    csv.writer(buffer, delimiter=",", quoting=csv.QUOTE_MINIMAL, lineterminator="\n").writerow([value, "tail"])

    assert tokenize_line(buffer.getvalue()[:-1], ",") == [value, "tail"]
