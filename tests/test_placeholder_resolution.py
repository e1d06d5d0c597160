"""
Tests for placeholder resolution.
Covers {Step.Output} text references and {Step.Output.path} JSON navigation.
"""

import json
import pytest

from ssisflow.exceptions import ReferenceResolutionError
from ssisflow.state import StepResult
from ssisflow.variables import PlaceholderResolver, PointerResolver


@pytest.fixture
def results():
    listing = {
        "packages": ["a.dtsx", "b.dtsx"],
        "count": 2,
        "meta": {"ok": True, "ratio": 0.5, "none": None, "name": "ETL"}
    }
    return {
        "List": {"Result": StepResult(json.dumps(listing), "json")},
        "Text": {"Result": StepResult("hello")},
        "Named-Step": {"Report": StepResult("report body")}
    }


class TestPlaceholderResolver:
    """Test placeholder substitution in strings and nested structures."""

    def setup_method(self):
        self.resolver = PlaceholderResolver()

    def test_whole_output_substituted(self, results):
        assert self.resolver.resolve_string("say {Text.Result}!", results) == "say hello!"

    def test_step_names_may_contain_hyphens(self, results):
        assert self.resolver.resolve_string("{Named-Step.Report}", results) == "report body"

    def test_multiple_placeholders_in_one_string(self, results):
        text = "{Text.Result} {List.Result.count} {Text.Result}"
        assert self.resolver.resolve_string(text, results) == "hello 2 hello"

    def test_json_path_scalars(self, results):
        assert self.resolver.resolve_string("{List.Result.count}", results) == "2"
        assert self.resolver.resolve_string("{List.Result.meta.ok}", results) == "true"
        assert self.resolver.resolve_string("{List.Result.meta.ratio}", results) == "0.5"
        assert self.resolver.resolve_string("{List.Result.meta.name}", results) == "ETL"

    def test_numbers_keep_their_literal_text(self):
        results = {
            "Stats": {"Result": StepResult('{"n": 1e5, "p": 1.50, "big": 0.12345678901234567890, "i": 12345678901234567890}', "json")}
        }

        resolved = [
            self.resolver.resolve_string("{Stats.Result.%s}" % key, results)
            for key in ("n", "p", "big", "i")
        ]

        assert resolved == ["1e5", "1.50", "0.12345678901234567890", "12345678901234567890"]

    def test_composite_keeps_number_literals(self):
        results = {"Stats": {"Result": StepResult('{"row": {"ratio": 1.50, "ok": true, "tags": []}}', "json")}}

        assert self.resolver.resolve_string("{Stats.Result.row}", results) == '{"ratio":1.50,"ok":true,"tags":[]}'

    def test_nan_is_not_json(self):
        results = {"Stats": {"Result": StepResult('{"x": NaN}', "json")}}

        with pytest.raises(ReferenceResolutionError, match="not valid JSON"):
            self.resolver.resolve_string("{Stats.Result.x}", results)

    def test_json_null_renders_empty(self, results):
        assert self.resolver.resolve_string("[{List.Result.meta.none}]", results) == "[]"

    def test_json_path_composite_renders_compact_json(self, results):
        assert self.resolver.resolve_string("{List.Result.packages}", results) == '["a.dtsx","b.dtsx"]'
        meta = json.loads(self.resolver.resolve_string("{List.Result.meta}", results))
        assert meta["name"] == "ETL"

    def test_array_index_segment(self, results):
        assert self.resolver.resolve_string("{List.Result.packages.1}", results) == "b.dtsx"

    def test_nested_structures_resolved_keys_untouched(self, results):
        params = {
            "{Text.Result}": "{Text.Result}",
            "files": ["{List.Result.packages.0}", "literal", 3],
            "options": {"count": "{List.Result.count}", "flag": True, "empty": None}
        }

        resolved = self.resolver.resolve(params, results)

        assert resolved == {
            "{Text.Result}": "hello",
            "files": ["a.dtsx", "literal", 3],
            "options": {"count": "2", "flag": True, "empty": None}
        }
        # Input is not modified
        assert params["files"][0] == "{List.Result.packages.0}"

    def test_non_placeholder_braces_left_alone(self, results):
        text = "{NoDot} {not a placeholder} {}"
        assert self.resolver.resolve_string(text, results) == text

    def test_missing_step(self, results):
        with pytest.raises(ReferenceResolutionError, match="'Later' has not produced outputs"):
            self.resolver.resolve_string("{Later.Result}", results)

    def test_missing_output(self, results):
        with pytest.raises(ReferenceResolutionError, match="does not contain output 'Other'"):
            self.resolver.resolve_string("{Text.Other}", results)

    def test_missing_key(self, results):
        with pytest.raises(ReferenceResolutionError, match="missing key 'nope'"):
            self.resolver.resolve_string("{List.Result.meta.nope}", results)

    def test_index_out_of_range(self, results):
        with pytest.raises(ReferenceResolutionError, match="index 5 out of range"):
            self.resolver.resolve_string("{List.Result.packages.5}", results)

    def test_path_into_scalar(self, results):
        with pytest.raises(ReferenceResolutionError, match="is not an object"):
            self.resolver.resolve_string("{List.Result.count.value}", results)

    def test_path_into_text_output(self, results):
        with pytest.raises(ReferenceResolutionError, match="not valid JSON"):
            self.resolver.resolve_string("{Text.Result.field}", results)

    def test_find_references(self):
        refs = self.resolver.find_references({
            "a": "{List.Result.packages} and {Text.Result}",
            "b": ["{Other.Report}"],
            "c": 1
        })

        assert sorted(refs) == [("List", "Result.packages"), ("Other", "Report"), ("Text", "Result")]


class TestPointerResolver:
    """Test direct pointer resolution."""

    def test_resolve_returns_decoded_value(self, results):
        pointers = PointerResolver(results)

        assert pointers.resolve("List", "Result.packages") == ["a.dtsx", "b.dtsx"]
        assert pointers.resolve("List", "Result.meta.ok") is True

    def test_resolve_without_path_returns_text(self, results):
        assert PointerResolver(results).resolve("Text", "Result") == "hello"

    def test_resolve_safe(self, results):
        pointers = PointerResolver(results)

        ok, value, error = pointers.resolve_safe("Text", "Result")
        assert ok and value == "hello" and error is None

        ok, value, error = pointers.resolve_safe("Missing", "Result")
        assert not ok
        assert value is None
        assert "has not produced outputs" in error
