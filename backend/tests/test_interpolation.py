"""Tests for {{path}} template interpolation."""

import pytest

from workflow.engine import ExecutionContext
from workflow.interpolation import interpolate, lookup_path, render_value, resolve_reference


@pytest.fixture
def ctx():
    context = ExecutionContext(input={"name": "Ana", "tags": ["a", "b"]})
    context.variables.update({
        "count": 3,
        "ratio": 2.0,
        "flag": True,
        "rows": [{"sku": "A-1"}, {"sku": "B-2"}],
        "nothing": None,
    })
    return context


@pytest.mark.unit
class TestInterpolate:

    def test_input_field(self, ctx):
        assert interpolate("hello {{input.name}}", ctx) == "hello Ana"

    def test_whitespace_inside_braces(self, ctx):
        assert interpolate("hello {{ input.name }}", ctx) == "hello Ana"

    def test_list_index(self, ctx):
        assert interpolate("{{variables.rows.1.sku}}", ctx) == "B-2"

    def test_missing_path_left_verbatim(self, ctx):
        assert interpolate("x={{variables.missing}}", ctx) == "x={{variables.missing}}"

    def test_index_out_of_range_left_verbatim(self, ctx):
        assert interpolate("{{variables.rows.9.sku}}", ctx) == "{{variables.rows.9.sku}}"

    def test_multiple_tokens(self, ctx):
        assert interpolate("{{input.name}}/{{variables.count}}", ctx) == "Ana/3"

    def test_non_string_passthrough(self, ctx):
        body = {"name": "{{input.name}}"}
        assert interpolate(body, ctx) is body
        assert interpolate(42, ctx) == 42
        assert interpolate(None, ctx) is None

    def test_rendering(self, ctx):
        assert interpolate("{{variables.flag}}", ctx) == "true"
        assert interpolate("{{variables.ratio}}", ctx) == "2"
        assert interpolate("{{variables.nothing}}", ctx) == "null"
        assert interpolate("{{input.tags}}", ctx) == '["a","b"]'

    def test_plain_mapping_context(self):
        assert interpolate("{{variables.x}}", {"variables": {"x": "y"}}) == "y"

    def test_bare_path_resolves_against_variables(self):
        assert interpolate("{{a.b}}", {"variables": {"a": {"b": "x"}}}) == "x"

    def test_bare_missing_path_left_verbatim(self):
        assert interpolate("{{missing}}", {"variables": {}}) == "{{missing}}"

    def test_bare_path_through_context(self, ctx):
        assert interpolate("{{rows.0.sku}} x{{count}}", ctx) == "A-1 x3"

    def test_root_keys_take_precedence(self):
        context = {"input": {"id": "from-input"}, "variables": {"input": {"id": "from-variables"}}}
        assert interpolate("{{input.id}}", context) == "from-input"


@pytest.mark.unit
class TestResolveReference:

    def test_single_token_returns_raw_value(self, ctx):
        assert resolve_reference("{{variables.rows}}", ctx) == [{"sku": "A-1"}, {"sku": "B-2"}]

    def test_mixed_text_is_interpolated(self, ctx):
        assert resolve_reference("n={{variables.count}}", ctx) == "n=3"

    def test_missing_single_token_stays_string(self, ctx):
        assert resolve_reference("{{variables.nope}}", ctx) == "{{variables.nope}}"

    def test_literal_list_passthrough(self, ctx):
        assert resolve_reference([1, 2], ctx) == [1, 2]

    def test_bare_single_token_returns_raw_value(self, ctx):
        assert resolve_reference("{{rows}}", ctx) == [{"sku": "A-1"}, {"sku": "B-2"}]


@pytest.mark.unit
def test_lookup_path_through_non_container_is_missing(ctx):
    from workflow.interpolation import _MISSING

    assert lookup_path("input.name.first", ctx) is _MISSING


@pytest.mark.unit
def test_render_value_plain_number():
    assert render_value(2.5) == "2.5"
    assert render_value(7) == "7"
