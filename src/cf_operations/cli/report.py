"""Output formatters for route listings: aligned table and JSON."""

from __future__ import annotations

import json
from typing import Any

from cf_operations.models import RouteRecord


def _row(cols: list[str], widths: list[int]) -> str:
    return "  ".join(c.ljust(w) for c, w in zip(cols, widths)).rstrip()


def format_table(records: list[RouteRecord]) -> str:
    hdr = ["space", "host", "domain", "path", "apps", "service"]
    rows = [
        [
            r.space,
            r.host,
            r.domain,
            r.path,
            ", ".join(r.applications),
            r.service_instance_id or "",
        ]
        for r in records
    ]
    widths = [max([len(col)] + [len(row[i]) for row in rows]) for i, col in enumerate(hdr)]

    lines = [_row(hdr, widths), "-" * (sum(widths) + 2 * (len(widths) - 1))]
    lines.extend(_row(row, widths) for row in rows)
    n = len(records)
    lines.append("")
    lines.append(f"{n} route{'s' if n != 1 else ''}")
    return "\n".join(lines)


def _record_to_dict(r: RouteRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "host": r.host,
        "domain": r.domain,
        "path": r.path,
        "space": r.space,
        "applications": r.applications,
        "service_instance_id": r.service_instance_id,
    }


def format_json(records: list[RouteRecord]) -> str:
    return json.dumps({"routes": [_record_to_dict(r) for r in records]}, indent=2)
