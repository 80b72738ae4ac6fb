"""Schema-stamped JSON output for CLI commands.

Every JSON document printed by the CLI carries ``schema_id``,
``schema_version``, ``producer`` and ``produced_at`` so scripts consuming it
can detect format changes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from narrowscope import __version__


def json_response(
    schema_id: str,
    schema_version: int,
    **data: Any,
) -> str:
    """Create schema-wrapped JSON response for CLI output.

    Args:
        schema_id: Identifier for the output type (e.g., "query_results").
        schema_version: Integer version for backward compatibility.
        **data: Payload data to include in the response.

    Returns:
        JSON string with schema metadata and payload.

    Example:
        >>> json_response("query_results", 1, input="#main", results=[])
        {
          "schema_id": "query_results",
          "schema_version": 1,
          "producer": "narrowscope-0.1.0",
          "produced_at": "2026-10-17T10:30:00+00:00",
          "input": "#main",
          "results": []
        }
    """
    wrapped = {
        "schema_id": schema_id,
        "schema_version": schema_version,
        "producer": f"narrowscope-{__version__}",
        "produced_at": datetime.now(UTC).isoformat(),
        **data,
    }
    return json.dumps(wrapped, indent=2, default=str)
