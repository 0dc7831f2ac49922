"""
Compatibility scorer port and its HTTP adapter.

The scoring algorithm lives in an external service; this module only knows
how to ask it for one (candidate, job posting) score.
"""

from typing import Optional, Protocol
from uuid import UUID

import httpx
from pydantic import ValidationError

from recruitment.core.config import settings
from recruitment.errors import ScoringError
from recruitment.schemas.compatibility import ScoreResult


class CompatibilityScorer(Protocol):
    """Interface for scorer adapters."""

    async def score(self, candidate_id: UUID, job_posting_id: UUID) -> ScoreResult:
        ...


class HttpCompatibilityScorer:
    """
    Scorer adapter that POSTs to `{base_url}/score`.

    Request body: {"candidate_id": ..., "job_posting_id": ...}
    Response body: {"score": 0-100, "justification": "..."}

    Any transport error, non-2xx status or malformed body raises
    ScoringError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def score(self, candidate_id: UUID, job_posting_id: UUID) -> ScoreResult:
        payload = {"candidate_id": str(candidate_id), "job_posting_id": str(job_posting_id)}
        timeout = httpx.Timeout(self.timeout_seconds)
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post("/score", json=payload, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ScoringError(f"scorer request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ScoringError(f"scorer returned HTTP {resp.status_code}")

        try:
            return ScoreResult.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise ScoringError(f"scorer returned an invalid payload: {exc}") from exc


def get_default_scorer() -> CompatibilityScorer:
    """HTTP scorer built from settings; raises ScoringError when SCORER_URL is unset."""
    if not settings.SCORER_URL:
        raise ScoringError("SCORER_URL is not configured")
    return HttpCompatibilityScorer(
        settings.SCORER_URL,
        api_key=settings.SCORER_API_KEY,
        timeout_seconds=settings.SCORER_TIMEOUT_SECONDS,
    )
