"""HTTP scorer adapter against a mocked transport."""

import json
import uuid
from decimal import Decimal

import httpx
import pytest

from recruitment.errors import ScoringError
from recruitment.services.scoring import HttpCompatibilityScorer


def _scorer(handler, api_key=None):
    return HttpCompatibilityScorer(
        "http://scorer.test/",
        api_key=api_key,
        timeout_seconds=5,
        transport=httpx.MockTransport(handler),
    )


async def test_posts_pair_and_parses_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"score": 87.5, "justification": "strong Python background"})

    candidate, job_posting = uuid.uuid4(), uuid.uuid4()
    result = await _scorer(handler, api_key="secret").score(candidate, job_posting)

    assert result.score == Decimal("87.5")
    assert result.justification == "strong Python background"
    assert seen["url"] == "http://scorer.test/score"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"candidate_id": str(candidate), "job_posting_id": str(job_posting)}


async def test_no_authorization_header_without_api_key():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"score": 10})

    result = await _scorer(handler).score(uuid.uuid4(), uuid.uuid4())
    assert result.justification is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, json={"detail": "overloaded"}),
        httpx.Response(200, json={"score": 140}),
        httpx.Response(200, json={"justification": "missing score"}),
        httpx.Response(200, content=b"not json"),
    ],
    ids=["http-error", "out-of-range", "missing-score", "not-json"],
)
async def test_bad_responses_raise_scoring_error(response):
    with pytest.raises(ScoringError):
        await _scorer(lambda request: response).score(uuid.uuid4(), uuid.uuid4())


async def test_transport_failure_raises_scoring_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ScoringError):
        await _scorer(handler).score(uuid.uuid4(), uuid.uuid4())
