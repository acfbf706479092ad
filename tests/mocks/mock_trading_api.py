"""
Mock trading service for testing.
Simulates the remote login / market-data / place-trade endpoints on an
httpx.MockTransport so no sockets are opened.
CRITICAL: This is for testing only - never part of main application.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx

LOGIN_OK = {"username": "alice", "email": "a@x.com", "token": "tok123"}
MARKET_DATA_OK = [{"price": 100}, {"price": 102}]


class MockTradingService:
    """Scriptable fake of the remote service with request recording"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responses: Dict[str, Tuple[int, Any]] = {
            "/login": (200, dict(LOGIN_OK)),
            "/market-data": (200, list(MARKET_DATA_OK)),
            "/place-trade": (200, {"status": "accepted", "order_id": "OID-1"}),
        }
        self.failures: Dict[str, Exception] = {}
        self.delays: Dict[str, float] = {}

    def respond(self, path: str, status_code: int, body: Any = None) -> None:
        """Script a response; ``body`` may be a callable taking the request"""
        self.responses[path] = (status_code, body)

    def fail(self, path: str, error: Exception) -> None:
        """Raise a transport error for every request to ``path``"""
        self.failures[path] = error

    def delay(self, path: str, seconds: float) -> None:
        """Hold every response to ``path`` for ``seconds``"""
        self.delays[path] = seconds

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.delays:
            await asyncio.sleep(self.delays[path])
        if path in self.failures:
            raise self.failures[path]
        if path not in self.responses:
            return httpx.Response(404, json={"error": "not found"})
        status_code, body = self.responses[path]
        if callable(body):
            body = body(request)
        if body is None:
            return httpx.Response(status_code)
        if isinstance(body, (bytes, str)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, path: Optional[str] = None) -> int:
        if path is None:
            return len(self.requests)
        return sum(1 for r in self.requests if r.url.path == path)

    def last_request(self, path: str) -> httpx.Request:
        matching = [r for r in self.requests if r.url.path == path]
        assert matching, f"no request to {path}"
        return matching[-1]


class MockModelBackend:
    """Deterministic in-process model: mean and last value of the input"""

    def __init__(self, input_length: Optional[int] = 2, fail_with: Optional[Exception] = None,
                 output: Optional[List[float]] = None):
        self._input_length = input_length
        self.fail_with = fail_with
        self.output = output
        self.calls = 0

    @property
    def expected_input_length(self) -> Optional[int]:
        return self._input_length

    def infer(self, vector):
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        if self.output is not None:
            return list(self.output)
        values = [float(v) for v in vector]
        return [sum(values) / len(values)]
