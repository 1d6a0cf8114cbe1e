"""Tests for template rendering."""

import logging

import pytest

from courier.expression import Scope
from courier.interpolation import (
    interpolate,
    interpolate_object,
    interpolate_strict,
    process_conditional,
    process_loop,
    quote_component,
    to_text,
)


def test_variable_substitution() -> None:
    """Placeholders should be replaced with their values."""
    assert interpolate("Hello {{name}}!", {"name": "Ann"}) == "Hello Ann!"


def test_unknown_placeholder_preserved() -> None:
    """Unresolved placeholders should be left as-is."""
    assert interpolate("{{unknown_var}}", {}) == "{{unknown_var}}"
    assert interpolate("a {{ spaced }} b", {}) == "a {{ spaced }} b"


def test_no_placeholders() -> None:
    """Template without placeholders should pass through unchanged."""
    template = '{"status": "ok"}'
    assert interpolate(template, {"status": "bad"}) == template


def test_rendering_is_idempotent_without_matches() -> None:
    """Rendering twice against a context with no matching keys changes nothing."""
    template = "{{a}} and {{b.c}}"
    once = interpolate(template, {"x": 1})
    assert once == template
    assert interpolate(once, {"x": 1}) == template


def test_partial_rendering_can_be_completed() -> None:
    """Unresolved placeholders should survive for a later render."""
    partial = interpolate("{{greeting}}, {{name}}", {"greeting": "Hi"})
    assert partial == "Hi, {{name}}"
    assert interpolate(partial, {"name": "Bo"}) == "Hi, Bo"


def test_value_formatting() -> None:
    """Values should render in their plain string form."""
    data = {"n": 3, "f": 1.5, "t": True, "no": False, "nil": None}
    assert interpolate("{{n}} {{f}} {{t}} {{no}} {{nil}}", data) == "3 1.5 true false null"


def test_structured_values_render_as_json() -> None:
    """Mappings and lists should render as compact JSON."""
    data = {"obj": {"a": 1}, "items": [1, "two"]}
    assert interpolate("{{obj}}|{{items}}", data) == '{"a":1}|[1,"two"]'


def test_formatter_applied() -> None:
    """A supplied formatter should format every substituted value."""
    result = interpolate("q={{q}}&n={{n}}", {"q": "a b/c", "n": 2}, quote_component)
    assert result == "q=a%20b%2Fc&n=2"


def test_formatter_not_applied_to_unresolved() -> None:
    """Unresolved placeholders should bypass the formatter."""
    assert interpolate("{{missing}}", {}, quote_component) == "{{missing}}"


def test_each_scenario() -> None:
    """A loop should concatenate its body once per element."""
    template = "Hello {{#each n in names}}{{n}}, {{/each}}bye"
    assert interpolate(template, {"names": ["Ann", "Bo"]}) == "Hello Ann, Bo, bye"


def test_each_binds_dot() -> None:
    """'.' should be bound to the current element inside a loop."""
    assert interpolate("{{#each x in xs}}[{{.}}]{{/each}}", {"xs": [1, 2, 3]}) == "[1][2][3]"


def test_each_sees_parent_scope() -> None:
    """Loop bodies should still see keys from the enclosing context."""
    data = {"sep": "-", "xs": ["a", "b"]}
    assert interpolate("{{#each x in xs}}{{x}}{{sep}}{{/each}}", data) == "a-b-"


def test_each_item_fields() -> None:
    """Loop items should be addressable by dotted paths."""
    data = {"users": [{"name": "Ann", "age": 30}, {"name": "Bo", "age": 4}]}
    template = "{{#each u in users}}{{u.name}}:{{u.age}};{{/each}}"
    assert interpolate(template, data) == "Ann:30;Bo:4;"


def test_each_empty_list() -> None:
    """An empty sequence should produce nothing."""
    assert interpolate("a{{#each x in xs}}{{x}}{{/each}}b", {"xs": []}) == "ab"


@pytest.mark.parametrize("value", ["text", 5, {"k": "v"}, None])
def test_each_non_array_yields_empty(value: object) -> None:
    """A non-sequence loop source should expand to nothing without raising."""
    assert interpolate("<{{#each x in xs}}{{x}}{{/each}}>", {"xs": value}) == "<>"


def test_each_missing_source_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    """A missing loop source should log a warning."""
    with caplog.at_level(logging.WARNING, logger="courier.interpolation"):
        assert interpolate("{{#each x in nope}}{{x}}{{/each}}", {}) == ""
    assert "did not evaluate to an array" in caplog.text


def test_nested_loops() -> None:
    """Loops should nest with each level binding its own item."""
    data = {"rows": [["a", "b"], ["c"]]}
    template = "{{#each row in rows}}[{{#each c in row}}{{c}}{{/each}}]{{/each}}"
    assert interpolate(template, data) == "[ab][c]"


def test_loop_item_shadows_parent_key() -> None:
    """A loop item should shadow a same-named key only inside the loop."""
    data = {"x": "outer", "xs": ["in"]}
    assert interpolate("{{#each x in xs}}{{x}}{{/each}}/{{x}}", data) == "in/outer"


def test_if_true_branch() -> None:
    """A truthy condition should render the true branch."""
    assert interpolate("{{#if ok}}yes{{else}}no{{/if}}", {"ok": True}) == "yes"


def test_if_false_branch() -> None:
    """A falsy condition should render the else branch."""
    assert interpolate("{{#if ok}}yes{{else}}no{{/if}}", {"ok": False}) == "no"


def test_if_without_else_renders_empty() -> None:
    """A falsy condition without else should render nothing."""
    assert interpolate("[{{#if ok}}yes{{/if}}]", {}) == "[]"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("", "F"),
        ("x", "T"),
        (0, "F"),
        (2, "T"),
        (float("nan"), "F"),
        (False, "F"),
        (None, "F"),
        ([], "T"),
        ([0], "T"),
        ({}, "T"),
    ],
)
def test_if_truthiness(value: object, expected: str) -> None:
    """Conditions should treat any mapping or list as true, even when empty."""
    assert interpolate("{{#if v}}T{{else}}F{{/if}}", {"v": value}) == expected


def test_if_discarded_branch_is_not_rendered() -> None:
    """Variables in the unchosen branch must not be substituted."""
    data = {"ok": False, "secret": "s3cr3t"}
    result = interpolate("{{#if ok}}{{secret}}{{else}}none{{/if}}", data)
    assert result == "none"
    assert "s3cr3t" not in result


def test_if_branch_renders_variables() -> None:
    """The chosen branch should itself be rendered."""
    data = {"user": {"name": "Ann"}}
    assert interpolate("{{#if user}}Hi {{user.name}}{{/if}}", data) == "Hi Ann"


def test_if_inside_loop_uses_item() -> None:
    """Conditionals inside loops should see the loop item."""
    data = {"tasks": [{"t": "a", "done": True}, {"t": "b", "done": False}]}
    template = "{{#each task in tasks}}{{task.t}}{{#if task.done}}+{{else}}-{{/if}}{{/each}}"
    assert interpolate(template, data) == "a+b-"


def test_loop_inside_if() -> None:
    """Loops inside a chosen branch should expand."""
    data = {"xs": [1, 2]}
    assert interpolate("{{#if xs}}{{#each x in xs}}{{x}}{{/each}}{{/if}}", data) == "12"


def test_nested_ifs() -> None:
    """Conditionals should nest."""
    template = "{{#if a}}{{#if b}}ab{{else}}a{{/if}}{{else}}-{{/if}}"
    assert interpolate(template, {"a": 1, "b": 0}) == "a"
    assert interpolate(template, {"a": 1, "b": 1}) == "ab"
    assert interpolate(template, {}) == "-"


def test_formatter_applies_inside_directives() -> None:
    """The formatter should reach variables rendered inside loops."""
    template = "{{#each w in words}}{{w}}+{{/each}}"
    result = interpolate(template, {"words": ["a b", "c"]}, quote_component)
    assert result == "a%20b+c+"


def test_text_root_context() -> None:
    """A plain-string context should render through '.'."""
    assert interpolate("Said: {{.}}", "hello") == "Said: hello"


def test_list_root_context() -> None:
    """A list context should be usable as a loop source via '.'."""
    assert interpolate("{{#each w in .}}<{{w}}>{{/each}}", ["a", "b"]) == "<a><b>"


def test_data_not_mutated() -> None:
    """Rendering should not mutate the data context."""
    data = {"xs": [1, 2], "y": {"z": 1}}
    interpolate("{{#each x in xs}}{{x}}{{y.z}}{{/each}}", data)
    assert data == {"xs": [1, 2], "y": {"z": 1}}


def test_process_conditional_returns_unrendered_block() -> None:
    """process_conditional should pick a block without rendering it."""
    assert process_conditional("ok", "{{a}}", "{{b}}", {"ok": 1}) == "{{a}}"
    assert process_conditional("ok", "{{a}}", "{{b}}", {"ok": 0}) == "{{b}}"
    assert process_conditional("ok", "{{a}}", None, {}) == ""


def test_process_loop_with_text_body() -> None:
    """process_loop should accept a template string as the body."""
    assert process_loop("n", "nums", "{{n}}.", {"nums": [1, 2]}) == "1.2."


def test_process_loop_with_scope() -> None:
    """process_loop should accept an existing scope."""
    scope = Scope.of({"prefix": ">"}).child(nums=[1])
    assert process_loop("n", "nums", "{{prefix}}{{n}}", scope) == ">1"


def test_to_text() -> None:
    """to_text should follow the documented conversions."""
    assert to_text("s") == "s"
    assert to_text(True) == "true"
    assert to_text(None) == "null"
    assert to_text({"é": 1}) == '{"é":1}'


def test_quote_component_keeps_unreserved() -> None:
    """quote_component should leave the URI-component safe set untouched."""
    assert quote_component("a-b_c.d!e~f*g'h(i)") == "a-b_c.d!e~f*g'h(i)"
    assert quote_component("a&b=c") == "a%26b%3Dc"


def test_interpolate_strict_resolved() -> None:
    """interpolate_strict should render fully-resolved templates."""
    assert interpolate_strict("Bearer {{token}}", {"token": "abc"}) == "Bearer abc"


def test_interpolate_strict_unresolved_is_none() -> None:
    """interpolate_strict should return None when a variable is missing."""
    assert interpolate_strict("Bearer {{token}}", {}) is None
    assert interpolate_strict("{{token}}", {"token": None}) is None
    assert interpolate_strict(None, {}) is None


def test_interpolate_strict_ignores_discarded_branch() -> None:
    """Missing variables in an unchosen branch should not count."""
    template = "{{#if token}}Bearer {{token}}{{else}}anonymous{{/if}}"
    assert interpolate_strict(template, {}) == "anonymous"


def test_interpolate_object_nested() -> None:
    """interpolate_object should render leaf strings and keep the shape."""
    value = {"q": "{{query}}", "opts": {"n": 3, "tags": ["{{tag}}", True]}, "none": None}
    data = {"query": "cats", "tag": "pets"}
    assert interpolate_object(value, data) == {
        "q": "cats",
        "opts": {"n": 3, "tags": ["pets", True]},
        "none": None,
    }


def test_interpolate_object_keys_not_templated() -> None:
    """Mapping keys should never be rendered."""
    assert interpolate_object({"{{k}}": "{{v}}"}, {"k": "x", "v": "y"}) == {"{{k}}": "y"}


def test_interpolate_object_scalars() -> None:
    """Non-string scalars pass through and None maps to None."""
    assert interpolate_object(None, {}) is None
    assert interpolate_object(7, {}) == 7
    assert interpolate_object(2.5, {}) == 2.5


def test_interpolate_object_does_not_mutate() -> None:
    """interpolate_object should build a new structure."""
    value = {"a": ["{{x}}"]}
    result = interpolate_object(value, {"x": "1"})
    assert value == {"a": ["{{x}}"]}
    assert result == {"a": ["1"]}


def test_if_empty_list_takes_true_branch() -> None:
    """An empty list is present data, so the true branch is chosen."""
    template = "{{#if messages}}history{{else}}fresh{{/if}}"
    assert interpolate(template, {"messages": []}) == "history"
    assert interpolate(template, {}) == "fresh"


def test_padded_placeholder_left_alone() -> None:
    """Placeholders with inner spaces belong to other template languages."""
    assert interpolate("Hi {{ name }} / {{name}}", {"name": "x"}) == "Hi {{ name }} / x"


def test_integral_floats_render_without_fraction() -> None:
    """Floats with no fractional part should render like integers."""
    assert interpolate("{{a}} {{b}}", {"a": 1.0, "b": 2.5}) == "1 2.5"
    assert to_text(-3.0) == "-3"
