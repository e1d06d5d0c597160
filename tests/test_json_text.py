"""Tests for literal-preserving JSON decoding and encoding."""

import json
import pytest

from ssisflow.variables import json_text
from ssisflow.variables.json_text import JsonNumber


class TestJsonText:

    def test_numbers_decode_to_literals(self):
        data = json_text.loads('{"n": 1e5, "p": -1.50, "i": 7}')

        assert all(isinstance(v, JsonNumber) for v in data.values())
        assert data == {"n": "1e5", "p": "-1.50", "i": "7"}

    @pytest.mark.parametrize("text", ["NaN", "[Infinity]", '{"x": -Infinity}'])
    def test_non_finite_constants_rejected(self, text):
        with pytest.raises(ValueError, match="is not valid JSON"):
            json_text.loads(text)

    def test_round_trip_keeps_literals(self):
        text = '{"n":1e5,"p":1.50,"s":"1.50","items":[0.10,true,null,{}],"empty":[]}'

        assert json_text.dumps(json_text.loads(text)) == text

    def test_indented_output_matches_json_module(self):
        value = {"data": [{"a": 1, "name": "Überblick", "nested": {"x": [], "y": {}}}, "text", None]}

        assert json_text.dumps(value, indent=2) == json.dumps(value, indent=2, ensure_ascii=False)

    def test_number_strings_stay_quoted(self):
        assert json_text.dumps({"version": "1.50"}) == '{"version":"1.50"}'

    def test_python_nan_refused(self):
        with pytest.raises(ValueError):
            json_text.dumps({"x": float("nan")})
