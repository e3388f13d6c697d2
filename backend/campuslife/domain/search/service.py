"""Service layer for campus-wide search."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from campuslife.domain.search import policy, schemas
from campuslife.infra.query import AnyOf, ILike, Order, QueryClient, contains_pattern, get_query_client
from campuslife.obs import metrics as obs_metrics
from campuslife.settings import settings

logger = logging.getLogger(__name__)

CATEGORIES = ("events", "clubs", "announcements")


def normalise_query(raw: Optional[str]) -> str:
	return (raw or "").strip()


class SearchService:
	"""Fan a free-text query out over events, clubs and announcements."""

	def __init__(self, client: Optional[QueryClient] = None, *, limit: Optional[int] = None) -> None:
		self._client = client
		self._limit = limit

	@property
	def db(self) -> QueryClient:
		return self._client or get_query_client()

	@property
	def limit(self) -> int:
		return self._limit if self._limit is not None else settings.search_result_limit

	async def _events(self, pattern: str) -> list[dict[str, Any]]:
		return await self.db.query_rows(
			"events",
			[AnyOf(ILike("title", pattern), ILike("description", pattern))],
			limit=self.limit,
		)

	async def _clubs(self, pattern: str) -> list[dict[str, Any]]:
		return await self.db.query_rows(
			"clubs",
			[AnyOf(ILike("name", pattern), ILike("description", pattern))],
			limit=self.limit,
		)

	async def _announcements(self, pattern: str) -> list[dict[str, Any]]:
		return await self.db.query_rows(
			"announcements",
			[AnyOf(ILike("title", pattern), ILike("content", pattern))],
			order=[Order("created_at", descending=True)],
			limit=self.limit,
		)

	async def search(self, raw_query: Optional[str]) -> schemas.SearchResultSet:
		"""Return matches for the query, or raise SearchFailed if any category query fails."""

		query = normalise_query(raw_query)
		if not query:
			obs_metrics.inc_search_query("empty")
			return schemas.SearchResultSet.empty()

		pattern = contains_pattern(query)
		started = time.perf_counter()
		outcomes = await asyncio.gather(
			self._events(pattern),
			self._clubs(pattern),
			self._announcements(pattern),
			return_exceptions=True,
		)
		obs_metrics.observe_search_latency(time.perf_counter() - started)

		for category, outcome in zip(CATEGORIES, outcomes):
			if isinstance(outcome, Exception):
				obs_metrics.inc_search_query("failed")
				logger.warning("search.failed category=%s error=%s", category, outcome.__class__.__name__)
				raise policy.SearchFailed(category) from outcome
			if isinstance(outcome, BaseException):
				raise outcome

		events, clubs, announcements = outcomes
		result = schemas.SearchResultSet(
			query=query,
			events=[schemas.EventHit.from_row(row) for row in events],
			clubs=[schemas.ClubHit.from_row(row) for row in clubs],
			announcements=[schemas.AnnouncementHit.from_row(row) for row in announcements],
		)
		for category in CATEGORIES:
			obs_metrics.observe_search_results(category, len(getattr(result, category)))
		obs_metrics.inc_search_query("ok")
		return result

	async def search_for(self, actor_id: str, raw_query: Optional[str]) -> schemas.SearchResultSet:
		"""Rate-limited entry point used by the HTTP layer."""

		if normalise_query(raw_query):
			await policy.enforce_rate_limit(actor_id)
		return await self.search(raw_query)
