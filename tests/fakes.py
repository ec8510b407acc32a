"""Test doubles for the completion provider, backoff sleep and Google verifier."""

from __future__ import annotations

import httpx

from chatclone.errors import InvalidCredential
from chatclone.services.completion_client import CompletionClient
from chatclone.services.google_verifier import GoogleIdentity


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def completion_response(content: str = "Recursion is when a function calls itself.") -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


class ScriptedProvider:
    """httpx transport handler replaying a list of (status, json) responses."""

    def __init__(self, responses: list[tuple[int, dict]]):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        return httpx.Response(status, json=body)


def make_completion_client(provider: ScriptedProvider, sleep: RecordingSleep | None = None) -> CompletionClient:
    return CompletionClient(
        "https://example-openai.openai.azure.com",
        "gpt-35-turbo",
        "2024-02-01",
        "test-api-key",
        transport=httpx.MockTransport(provider),
        sleep=sleep or RecordingSleep(),
    )


class FakeVerifier:
    """GoogleCredentialVerifier stand-in: token string -> identity, unknown tokens rejected."""

    def __init__(self, identities: dict[str, GoogleIdentity] | None = None):
        self.identities = identities or {}
        self.calls: list[str] = []

    def verify(self, token: str) -> GoogleIdentity:
        self.calls.append(token)
        if token not in self.identities:
            raise InvalidCredential("Invalid Google token", status_code=401)
        return self.identities[token]
