from __future__ import annotations

from typing import Any, Mapping, Optional

from vibecircle.obs.logging import get_logger

audit_logger = get_logger("audit.engine")


def log_flow_event(
    event: str,
    user_id: str,
    *,
    extra: Optional[Mapping[str, Any]] = None,
) -> None:
    payload: dict[str, Any] = {
        "event": event,
        "actor_id": user_id,
    }
    if extra:
        payload.update(extra)
    filtered = {key: value for key, value in payload.items() if value is not None}
    audit_logger.info("engine_event", extra=filtered)
