"""Human/JSON output helpers.

The CLI renders a Result for humans (compact key-value text) or for
machines (--json). Graph values are serialized through
:func:`~bibgraph.graph.loader.graph_to_mapping`.
"""

from __future__ import annotations

import json as _json
import math
from typing import Any

from pydantic import BaseModel

from bibgraph.domain.result import Result
from bibgraph.graph.core import Graph
from bibgraph.graph.loader import graph_to_mapping


def to_jsonable(value: Any) -> Any:
    """Recursively convert models, graphs, and tuples into JSON-safe values."""
    if isinstance(value, Graph):
        return graph_to_mapping(value)
    if isinstance(value, BaseModel):
        data = {name: to_jsonable(getattr(value, name)) for name in type(value).model_fields}
        for name, attr in vars(type(value)).items():
            if isinstance(attr, property) and not name.startswith("_"):
                data[name] = to_jsonable(getattr(value, name))
        return data
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple | set | frozenset):
        return [to_jsonable(v) for v in value]
    if isinstance(value, float) and math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return value


def _compact(value: Any) -> str:
    return _json.dumps(value, separators=(",", ":"))


def _format_data_human(data: Any) -> str:
    """Format result data as indented key-value pairs (or one line per item)."""
    if isinstance(data, list):
        return "\n".join(
            f"  - {_compact(item) if isinstance(item, dict | list) else item}" for item in data
        )
    if not isinstance(data, dict):
        return f"  {data}"
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, dict | list):
            lines.append(f"  {key}: {_compact(value)}")
        else:
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)


def result_payload(result: Result[Any]) -> dict[str, Any]:
    return {
        "ok": result.ok,
        "op": result.op,
        "value": to_jsonable(result.value),
        "error": to_jsonable(result.error),
        "partial": to_jsonable(result.partial),
        "warnings": list(result.warnings),
        "meta": to_jsonable(result.meta),
    }


def format_result(result: Result[Any], *, json_output: bool = False, quiet: bool = False) -> str:
    """Format a Result for display.

    Args:
        result: The algorithm result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
        quiet: Human mode only; print the status line without the payload.
    """
    if json_output:
        return _json.dumps(result_payload(result), indent=2)
    if result.ok:
        parts = [f"OK: {result.op}"]
        if result.partial is not None:
            parts[0] = f"PARTIAL: {result.op} ({result.partial.message})"
        if not quiet and result.value is not None:
            parts.append(_format_data_human(to_jsonable(result.value)))
        return "\n".join(parts)
    error_msg = result.error.message if result.error else "Unknown error"
    code = f"[{result.error.code}] " if result.error else ""
    return f"ERROR: {result.op} - {code}{error_msg}"
