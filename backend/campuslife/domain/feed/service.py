"""Featured-events feed for the home page.

The feed prefers upcoming events whose category matches the caller's interest
tags. When that yields nothing (no caller, no tags, or no match) it falls
back to the next upcoming events regardless of category. The result is one
list or the other, never a mix of both.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence

from campuslife.domain.events.models import Event, event_from_row
from campuslife.domain.events.service import attach_clubs
from campuslife.infra.query import Eq, Gte, In, Order, QueryClient, QueryError, get_query_client
from campuslife.obs import metrics as obs_metrics
from campuslife.settings import settings

logger = logging.getLogger(__name__)


class FeedService:
	def __init__(self, client: Optional[QueryClient] = None) -> None:
		self._client = client

	@property
	def db(self) -> QueryClient:
		return self._client or get_query_client()

	async def load_interests(self, user_id: str) -> List[str]:
		rows = await self.db.query_rows("profiles", [Eq("id", user_id)], columns=["interests"], limit=1)
		if not rows:
			return []
		return [tag for tag in (rows[0].get("interests") or []) if tag]

	async def _upcoming(self, today: date, limit: int, interests: Sequence[str] = ()) -> List[Event]:
		filters = [Gte("date", today)]
		if interests:
			filters.append(In("category", interests))
		rows = await self.db.query_rows("events", filters, order=[Order("date")], limit=limit)
		return [event_from_row(row) for row in rows]

	async def select_featured_events(
		self,
		today: date,
		*,
		user_id: Optional[str] = None,
		interests: Optional[Sequence[str]] = None,
		limit: Optional[int] = None,
	) -> List[Event]:
		"""Pick up to ``limit`` upcoming events for the home page.

		``interests`` given explicitly (even empty) skips the profile read.
		Query failures are logged and produce an empty list.
		"""

		limit = settings.featured_events_limit if limit is None else limit
		try:
			if user_id and interests is None:
				interests = await self.load_interests(user_id)
			tags = list(interests or [])

			events: List[Event] = []
			source = "fallback"
			if tags:
				events = await self._upcoming(today, limit, tags)
				if events:
					source = "personalized"
			if not events:
				events = await self._upcoming(today, limit)
			await attach_clubs(self.db, events)
		except QueryError as exc:
			obs_metrics.inc_feed_selection("error")
			logger.warning("feed.failed table=%s error=%s", exc.table, exc.message)
			return []

		obs_metrics.inc_feed_selection(source)
		return events
