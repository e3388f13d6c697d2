"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
	"campuslife_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"campuslife_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SEARCH_QUERIES = Counter(
	"campuslife_search_queries_total",
	"Search aggregations executed",
	["outcome"],
)

SEARCH_LATENCY = Histogram(
	"campuslife_search_latency_seconds",
	"Search aggregation latency",
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0),
)

SEARCH_RESULTS = Histogram(
	"campuslife_search_results",
	"Rows returned per search category",
	["category"],
	buckets=(0, 1, 2, 5, 10),
)

SEARCH_SUPERSEDED = Counter(
	"campuslife_search_superseded_total",
	"Searches discarded because a newer search started in the same session",
)

FEED_SELECTIONS = Counter(
	"campuslife_feed_selections_total",
	"Featured event feed computations by outcome",
	["source"],
)

CLUB_MEMBERSHIP_CHANGES = Counter(
	"campuslife_club_membership_changes_total",
	"Club joins and leaves",
	["action"],
)

EVENT_REGISTRATION_CHANGES = Counter(
	"campuslife_event_registration_changes_total",
	"Event registrations and cancellations",
	["action"],
)

IDENTITY_ACTIONS = Counter(
	"campuslife_identity_actions_total",
	"Sign-ups, sign-ins and password resets",
	["action", "outcome"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_search_query(outcome: str) -> None:
	SEARCH_QUERIES.labels(outcome=outcome).inc()


def observe_search_latency(latency_seconds: float) -> None:
	SEARCH_LATENCY.observe(latency_seconds)


def observe_search_results(category: str, count: int) -> None:
	SEARCH_RESULTS.labels(category=category).observe(count)


def inc_search_superseded() -> None:
	SEARCH_SUPERSEDED.inc()


def inc_feed_selection(source: str) -> None:
	FEED_SELECTIONS.labels(source=source).inc()


def inc_club_membership(action: str) -> None:
	CLUB_MEMBERSHIP_CHANGES.labels(action=action).inc()


def inc_event_registration(action: str) -> None:
	EVENT_REGISTRATION_CHANGES.labels(action=action).inc()


def inc_identity(action: str, outcome: str) -> None:
	IDENTITY_ACTIONS.labels(action=action, outcome=outcome).inc()
