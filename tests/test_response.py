"""
Tests for payload normalisation helpers.
"""

import math

import pytest

from kopendata.exceptions import ParseError
from kopendata.response import extract_items, first_present, parse_float, parse_xml

ENVELOPE = """
<response>
  <header><resultCode>00</resultCode><resultMsg>NORMAL SERVICE.</resultMsg></header>
  <body>
    <items>
      <item><code>1</code><name> 한강대교 </name></item>
      <item><code>2</code><name>잠수교</name></item>
    </items>
    <totalCount>2</totalCount>
  </body>
</response>
"""


class TestParseXml:
    def test_envelope(self):
        document = parse_xml(ENVELOPE)

        header = document["response"]["header"]
        assert header == {"resultCode": "00", "resultMsg": "NORMAL SERVICE."}
        assert extract_items(document) == [
            {"code": "1", "name": "한강대교"},
            {"code": "2", "name": "잠수교"},
        ]

    def test_repeated_tags_and_attributes(self):
        document = parse_xml('<a x="1"><b>1</b><b>2</b><c/></a>')

        assert document == {"a": {"x": "1", "b": ["1", "2"], "c": ""}}

    def test_single_item_becomes_list(self):
        document = parse_xml("<response><body><items><item><code>7</code></item></items></body></response>")

        assert extract_items(document) == [{"code": "7"}]

    def test_empty_items(self):
        document = parse_xml("<response><body><items></items></body></response>")

        assert extract_items(document) == []

    def test_malformed(self):
        with pytest.raises(ParseError):
            parse_xml("<response><body>")


class TestExtractItems:
    def test_json_content(self):
        assert extract_items({"content": [{"wlobscd": "1"}, "junk"]}) == [{"wlobscd": "1"}]

    def test_bare_list(self):
        assert extract_items([{"a": 1}, None]) == [{"a": 1}]

    @pytest.mark.parametrize("document", [None, "", "error page", {"unexpected": []}])
    def test_unknown_shapes(self, document):
        assert extract_items(document) == []


class TestFirstPresent:
    def test_skips_blank_and_structured_values(self):
        record = {"a": "  ", "b": None, "c": {"x": 1}, "d": " 3.5 ", "e": "later"}

        assert first_present(record, ("missing", "a", "b", "c", "d", "e")) == "3.5"

    def test_numbers_are_stringified(self):
        assert first_present({"wl": 0}, ("wl",)) == "0"

    def test_nothing_present(self):
        assert first_present({"a": ""}, ("a", "b")) is None


class TestParseFloat:
    @pytest.mark.parametrize(
        "raw, expected",
        [("1,234.5", 1234.5), (" 3 ", 3.0), (3, 3.0), (-0.5, -0.5), ("-1.25", -1.25)],
    )
    def test_numbers(self, raw, expected):
        assert parse_float(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "abc", "-", True, "nan", "inf", math.inf])
    def test_non_numbers(self, raw):
        assert parse_float(raw) is None
