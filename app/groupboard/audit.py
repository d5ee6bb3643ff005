import json
import logging
from typing import Any

from flask import g, has_request_context, request

logger = logging.getLogger("groupboard.audit")


def record_event(
    *,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Append-only audit event helper. One log line per mutating operation.
    """
    in_request = has_request_context()
    ev = {
        "request_id": request_id or (getattr(g, "request_id", None) if in_request else None),
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "client_ip": request.remote_addr if in_request else None,
        "metadata": json.dumps(metadata, sort_keys=True, default=str) if metadata else None,
    }
    logger.info(
        "audit action=%s entity=%s:%s request_id=%s client_ip=%s metadata=%s",
        ev["action"],
        ev["entity_type"],
        ev["entity_id"],
        ev["request_id"],
        ev["client_ip"],
        ev["metadata"],
    )
    return ev
