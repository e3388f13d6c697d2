"""Search domain exports."""

from .policy import SearchFailed, SearchPolicyError, SearchRateLimitError, SearchSuperseded
from .service import SearchService
from .session import SearchSession, SearchSessionRegistry, SearchStatus

__all__ = [
	"SearchFailed",
	"SearchPolicyError",
	"SearchRateLimitError",
	"SearchService",
	"SearchSession",
	"SearchSessionRegistry",
	"SearchStatus",
	"SearchSuperseded",
]
