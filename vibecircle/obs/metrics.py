"""Central registry for Prometheus metrics used across the engine."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge

log = logging.getLogger(__name__)


MATCHES_ADMITTED = Counter(
	"vibecircle_matches_admitted_total",
	"Matches admitted into the daily queue",
)

MATCH_QUOTA_EXHAUSTED = Counter(
	"vibecircle_match_quota_exhausted_total",
	"Queue generation attempts rejected because the daily quota is spent",
)

MATCH_ACTIONS = Counter(
	"vibecircle_match_actions_total",
	"Connect/pass actions on matches",
	["action", "result"],
)

CIRCLE_ACTIONS = Counter(
	"vibecircle_circle_actions_total",
	"Circle join/create/leave actions",
	["action", "result"],
)

MESSAGES_TOTAL = Counter(
	"vibecircle_messages_total",
	"Messages appended to conversations",
	["direction"],
)

HANGOUTS_SCHEDULED = Counter(
	"vibecircle_hangouts_scheduled_total",
	"Hangouts scheduled",
	["result"],
)

NOTIFICATIONS_PUBLISHED = Counter(
	"vibecircle_notifications_published_total",
	"Notifications published to the feed",
	["category", "surfaced"],
)

NOTIFICATION_DELIVERY_FAILURES = Counter(
	"vibecircle_notification_delivery_failures_total",
	"Delivery sink errors (logged, never surfaced)",
	["category"],
)

MILESTONES_UNLOCKED = Counter(
	"vibecircle_milestones_unlocked_total",
	"Milestones unlocked",
	["milestone"],
)

VIBES_SHARED = Counter(
	"vibecircle_vibes_shared_total",
	"Vibes published",
)

FLOW_ROLLBACKS = Counter(
	"vibecircle_flow_rollbacks_total",
	"Multi-store flows rolled back",
	["flow", "reason"],
)

SESSION_TRANSITIONS = Counter(
	"vibecircle_session_transitions_total",
	"Session state transitions",
	["state"],
)

ACTIVE_SESSIONS = Gauge(
	"vibecircle_active_sessions",
	"Authenticated sessions currently holding store bundles",
)


def inc_match_admitted(count: int = 1) -> None:
	if count > 0:
		MATCHES_ADMITTED.inc(count)


def inc_match_quota_exhausted() -> None:
	MATCH_QUOTA_EXHAUSTED.inc()


def inc_match_action(action: str, result: str) -> None:
	MATCH_ACTIONS.labels(action=action, result=result).inc()


def inc_circle_action(action: str, result: str) -> None:
	CIRCLE_ACTIONS.labels(action=action, result=result).inc()


def inc_message(direction: str) -> None:
	MESSAGES_TOTAL.labels(direction=direction).inc()


def inc_hangout(result: str) -> None:
	HANGOUTS_SCHEDULED.labels(result=result).inc()


def inc_notification(category: str, surfaced: bool) -> None:
	NOTIFICATIONS_PUBLISHED.labels(category=category, surfaced=str(surfaced).lower()).inc()


def inc_delivery_failure(category: str) -> None:
	NOTIFICATION_DELIVERY_FAILURES.labels(category=category).inc()


def inc_milestone(milestone_id: str) -> None:
	MILESTONES_UNLOCKED.labels(milestone=milestone_id).inc()


def inc_vibe_shared() -> None:
	VIBES_SHARED.inc()


def inc_flow_rollback(flow: str, reason: str) -> None:
	FLOW_ROLLBACKS.labels(flow=flow, reason=reason).inc()
	log.debug("flow rolled back", extra={"flow_name": flow, "reason": reason})


def inc_session_transition(state: str) -> None:
	SESSION_TRANSITIONS.labels(state=state).inc()


def session_opened() -> None:
	ACTIVE_SESSIONS.inc()


def session_closed() -> None:
	ACTIVE_SESSIONS.dec()
