from __future__ import annotations

import json
from typing import Any, Mapping, Optional

KEY_PREFIX = "fetch"


def canonical_json(obj: Any) -> str:
    """Stable JSON: sorted keys, compact separators, non-JSON values via str()."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


def request_key(url: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Cache/dedupe key for a request: fetch:{url}:{canonical options}.
    Identical logical requests map to the same key regardless of dict order.
    """
    opts = dict(options) if options else {}
    return f"{KEY_PREFIX}:{url}:{canonical_json(opts)}"
