"""Rate limits and failure types for search."""

from __future__ import annotations

from dataclasses import dataclass

from campuslife.infra.rate_limit import allow
from campuslife.settings import settings


@dataclass(slots=True)
class SearchPolicyError(Exception):
	detail: str
	status_code: int = 400

	def __str__(self) -> str:  # pragma: no cover - debugging aid
		return self.detail


class SearchRateLimitError(SearchPolicyError):
	def __init__(self) -> None:
		super().__init__(detail="rate_limit", status_code=429)


class SearchFailed(SearchPolicyError):
	"""One of the category queries failed; no partial results are returned."""

	def __init__(self, category: str = "") -> None:
		super().__init__(detail="search_failed", status_code=502)
		self.category = category


class SearchSuperseded(SearchPolicyError):
	def __init__(self, seq: int = 0) -> None:
		super().__init__(detail="superseded", status_code=409)
		self.seq = seq


async def enforce_rate_limit(actor_id: str, *, kind: str = "search", limit: int | None = None) -> None:
	"""Ensure the caller remains within the configured budget."""

	budget = settings.search_per_minute if limit is None else limit
	allowed = await allow(kind, actor_id, limit=budget)
	if not allowed:
		raise SearchRateLimitError()
