"""REST endpoints for campus-wide search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from campuslife.api.deps import get_actor_key
from campuslife.domain.search import policy, schemas
from campuslife.domain.search.service import SearchService
from campuslife.domain.search.session import registry

router = APIRouter(tags=["search"])

_service = SearchService()


def _as_http_error(exc: policy.SearchPolicyError) -> HTTPException:
	return HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.get("/search", response_model=schemas.SearchResultSet)
async def search_endpoint(
	query: schemas.SearchQuery = Depends(),
	actor_key: str = Depends(get_actor_key),
) -> schemas.SearchResultSet:
	try:
		return await _service.search_for(actor_key, query.q)
	except policy.SearchPolicyError as exc:
		raise _as_http_error(exc) from exc


@router.get("/search/live", response_model=schemas.LiveSearchResponse)
async def live_search_endpoint(
	query: schemas.SearchQuery = Depends(),
	actor_key: str = Depends(get_actor_key),
) -> schemas.LiveSearchResponse:
	"""Search through the caller's session; a result overtaken by a newer search is rejected."""

	session = registry.get(actor_key)
	outcome = await session.submit(query.q, actor_id=actor_key)
	if not outcome.applied:
		raise _as_http_error(policy.SearchSuperseded(outcome.seq))
	if outcome.error is not None:
		raise _as_http_error(outcome.error)
	return schemas.LiveSearchResponse(seq=outcome.seq, status=session.status.value, results=session.results)
