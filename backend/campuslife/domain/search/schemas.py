"""Pydantic schemas for the campus-wide search."""

from __future__ import annotations

import datetime as dt
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field


class SearchQuery(BaseModel):
	q: str = Field(default="", max_length=120, description="Raw user input")


class EventHit(BaseModel):
	id: str
	title: str
	description: Optional[str] = None
	date: Optional[dt.date] = None
	category: Optional[str] = None
	location: Optional[str] = None

	@classmethod
	def from_row(cls, row: Mapping[str, Any]) -> "EventHit":
		return cls(
			id=str(row["id"]),
			title=row["title"],
			description=row.get("description"),
			date=row.get("date"),
			category=row.get("category"),
			location=row.get("location"),
		)


class ClubHit(BaseModel):
	id: str
	name: str
	description: Optional[str] = None
	category: Optional[str] = None

	@classmethod
	def from_row(cls, row: Mapping[str, Any]) -> "ClubHit":
		return cls(
			id=str(row["id"]),
			name=row["name"],
			description=row.get("description"),
			category=row.get("category"),
		)


class AnnouncementHit(BaseModel):
	id: str
	title: str
	content: str
	created_at: Optional[dt.datetime] = None

	@classmethod
	def from_row(cls, row: Mapping[str, Any]) -> "AnnouncementHit":
		return cls(
			id=str(row["id"]),
			title=row["title"],
			content=row["content"],
			created_at=row.get("created_at"),
		)


class SearchResultSet(BaseModel):
	"""Matches for exactly one query string."""

	query: str = ""
	events: List[EventHit] = Field(default_factory=list)
	clubs: List[ClubHit] = Field(default_factory=list)
	announcements: List[AnnouncementHit] = Field(default_factory=list)

	@classmethod
	def empty(cls, query: str = "") -> "SearchResultSet":
		return cls(query=query)

	@property
	def is_empty(self) -> bool:
		return not (self.events or self.clubs or self.announcements)

	@property
	def total(self) -> int:
		return len(self.events) + len(self.clubs) + len(self.announcements)


class LiveSearchResponse(BaseModel):
	seq: int
	status: str
	results: SearchResultSet
