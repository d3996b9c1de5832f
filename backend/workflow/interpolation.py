"""Template interpolation for step configuration values.

Substitutes ``{{ dotted.path }}`` tokens inside strings with values from the
execution context. Paths are walked from a root mapping that holds
``input``, ``variables`` and ``logs`` side by side:

    interpolate("hello {{input.name}}", ctx)        -> "hello Ana"
    interpolate("{{variables.items.0.sku}}", ctx)   -> "A-1"
    interpolate("{{variables.missing}}", ctx)       -> "{{variables.missing}}"

A path whose first segment is not one of those keys is looked up in
``variables`` instead, so ``{{items.0.sku}}`` is the same as
``{{variables.items.0.sku}}``.

Only strings are interpolated; dicts, lists and numbers pass through
untouched. A token whose path cannot be resolved is left in the output
verbatim. There is no escape syntax for a literal ``{{...}}``.
"""

import json
import re
from typing import Any, Mapping

TOKEN_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

_MISSING = object()


def _root(context: Any) -> Mapping[str, Any]:
    if isinstance(context, Mapping):
        return context
    return context.as_namespace()


def _walk(current: Any, segments: list[str]) -> Any:
    for segment in segments:
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else _MISSING
        else:
            current = _MISSING
        if current is _MISSING:
            return _MISSING
    return current


def lookup_path(path: str, context: Any) -> Any:
    """Walk a dotted path through mappings and sequences.

    The walk starts at the root mapping. When the first segment is not a
    root key, the same path is resolved against ``variables``, so
    ``{{row.sku}}`` finds ``variables["row"]["sku"]``.

    Returns the module-level ``_MISSING`` sentinel when a segment is absent.
    """
    root = _root(context)
    segments = path.strip().split(".")
    if segments[0] in root:
        return _walk(root, segments)
    variables = root.get("variables")
    if isinstance(variables, Mapping):
        return _walk(variables, segments)
    return _MISSING


def render_value(value: Any) -> str:
    """Render a resolved value as the text that replaces its token."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def interpolate(value: Any, context: Any) -> Any:
    """Replace every resolvable ``{{path}}`` token in a string value.

    Args:
        value: Raw config value
        context: ExecutionContext or a plain root mapping

    Returns:
        The interpolated string, or ``value`` unchanged when it is not a string
    """
    if not isinstance(value, str):
        return value

    def _substitute(match: re.Match) -> str:
        resolved = lookup_path(match.group(1), context)
        if resolved is _MISSING:
            return match.group(0)
        return render_value(resolved)

    return TOKEN_PATTERN.sub(_substitute, value)


def resolve_reference(value: Any, context: Any) -> Any:
    """Like :func:`interpolate`, but a string made of one token yields the raw value.

    ``"{{variables.rows}}"`` returns the list itself rather than its JSON text,
    which lets loop steps iterate collections produced by earlier steps.
    """
    if isinstance(value, str):
        match = TOKEN_PATTERN.fullmatch(value.strip())
        if match:
            resolved = lookup_path(match.group(1), context)
            if resolved is not _MISSING:
                return resolved
    return interpolate(value, context)
