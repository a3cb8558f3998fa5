"""
Fakes for the hosted model client and the gateway's clock.
"""

import asyncio
import json
from typing import Any

import anthropic
import httpx

MODEL_URL = "https://api.anthropic.com/v1/messages"


class FakeTextBlock:
    type = "text"

    def __init__(self, text: str):
        self.text = text


class FakeMessage:
    def __init__(self, text: str):
        self.content = [FakeTextBlock(text)]


class FakeMessages:
    """
    Stand-in for client.messages.

    Each call consumes the next outcome: an exception is raised, a dict is
    returned as JSON text, a str is returned as-is, and a float makes the
    call hang for that many seconds.
    """

    def __init__(self, outcomes: list[Any]):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, float):
            await asyncio.sleep(outcome)
            return FakeMessage("{}")
        if isinstance(outcome, dict):
            return FakeMessage(json.dumps(outcome))
        return FakeMessage(outcome)


class FakeModelClient:
    def __init__(self, *outcomes):
        self.messages = FakeMessages(list(outcomes))

    @property
    def calls(self) -> list[dict]:
        return self.messages.calls


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# ===================
# UPSTREAM ERRORS
# ===================

def _response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", MODEL_URL))


def timeout_error() -> anthropic.APITimeoutError:
    return anthropic.APITimeoutError(request=httpx.Request("POST", MODEL_URL))


def connection_error() -> anthropic.APIConnectionError:
    return anthropic.APIConnectionError(request=httpx.Request("POST", MODEL_URL))


def throttled_error() -> anthropic.RateLimitError:
    return anthropic.RateLimitError("rate limited", response=_response(429), body=None)


def server_error() -> anthropic.InternalServerError:
    return anthropic.InternalServerError("upstream failure", response=_response(500), body=None)


def bad_request_error() -> anthropic.BadRequestError:
    return anthropic.BadRequestError("invalid request", response=_response(400), body=None)


def model_answer(**overrides) -> dict:
    """A valid model answer for product prod-x."""
    answer = {
        "consumption_patterns": [
            {
                "product_id": "prod-x",
                "average_days_between_purchases": 10.0,
                "predicted_next_purchase_date": "2025-01-31T00:00:00Z",
                "confidence": 0.8,
            }
        ],
        "customer_profile": {
            "segment": "frequent",
            "shopping_frequency": "weekly",
            "favorite_products": ["prod-x"],
        },
        "recommendations": [
            {
                "type": "reorder",
                "priority": "high",
                "confidence": 0.9,
                "product_id": "prod-x",
                "title": "Reorder Coffee",
                "description": "Due in 3 days",
                "action": "Reorder 10 units",
                "days_until_action": 3,
                "recommended_quantity": 10,
            }
        ],
        "confidence": 0.8,
    }
    answer.update(overrides)
    return answer
