"""Per-client search sessions.

Every search started through a session gets the next sequence number. When a
search completes its result is applied only if no newer search was started in
the meantime; otherwise it is dropped and reported as superseded. This keeps a
slow request for an old query from overwriting the results of the latest one.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from campuslife.domain.search import policy, schemas
from campuslife.domain.search.service import SearchService
from campuslife.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

MAX_SESSIONS = 10_000


class SearchStatus(str, Enum):
	IDLE = "idle"
	LOADING = "loading"
	READY = "ready"
	ERROR = "error"


@dataclass(slots=True)
class SearchOutcome:
	seq: int
	applied: bool
	results: Optional[schemas.SearchResultSet] = None
	error: Optional[policy.SearchPolicyError] = None


@dataclass
class SearchSession:
	service: SearchService
	latest_seq: int = 0
	status: SearchStatus = SearchStatus.IDLE
	query: str = ""
	results: schemas.SearchResultSet = field(default_factory=schemas.SearchResultSet.empty)
	error: Optional[str] = None

	def begin(self, query: str) -> int:
		self.latest_seq += 1
		self.query = query
		self.status = SearchStatus.LOADING
		self.error = None
		return self.latest_seq

	def is_current(self, seq: int) -> bool:
		return seq == self.latest_seq

	async def submit(self, raw_query: Optional[str], *, actor_id: Optional[str] = None) -> SearchOutcome:
		"""Run one search and apply it only if it is still the latest."""

		seq = self.begin((raw_query or "").strip())
		try:
			if actor_id is None:
				results = await self.service.search(raw_query)
			else:
				results = await self.service.search_for(actor_id, raw_query)
		except policy.SearchPolicyError as exc:
			if not self.is_current(seq):
				obs_metrics.inc_search_superseded()
				return SearchOutcome(seq=seq, applied=False, error=exc)
			self.status = SearchStatus.ERROR
			self.error = exc.detail
			self.results = schemas.SearchResultSet.empty(self.query)
			return SearchOutcome(seq=seq, applied=True, error=exc)

		if not self.is_current(seq):
			obs_metrics.inc_search_superseded()
			logger.info("search.superseded seq=%s latest=%s", seq, self.latest_seq)
			return SearchOutcome(seq=seq, applied=False, results=results)
		self.results = results
		self.status = SearchStatus.READY
		return SearchOutcome(seq=seq, applied=True, results=results)


class SearchSessionRegistry:
	"""Bounded map of client key -> session, least recently used evicted first."""

	def __init__(self, service: Optional[SearchService] = None, *, max_sessions: int = MAX_SESSIONS) -> None:
		self._service = service or SearchService()
		self._sessions: "OrderedDict[str, SearchSession]" = OrderedDict()
		self._max = max_sessions

	def get(self, key: str) -> SearchSession:
		session = self._sessions.get(key)
		if session is None:
			session = SearchSession(service=self._service)
			self._sessions[key] = session
			while len(self._sessions) > self._max:
				self._sessions.popitem(last=False)
		else:
			self._sessions.move_to_end(key)
		return session

	def reset(self) -> None:
		self._sessions.clear()

	def __len__(self) -> int:
		return len(self._sessions)


registry = SearchSessionRegistry()
