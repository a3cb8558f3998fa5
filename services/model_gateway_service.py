"""
Hosted model gateway for customer analysis.

Sends a bounded summary of a customer's purchases and interactions to the
Anthropic Messages API and validates the JSON answer against a strict
schema. Retries, per-attempt timeouts and the overall deadline are owned
here; the SDK's own retry loop is disabled.

Expected failures are raised as ModelError subclasses so the caller can
switch to the fallback heuristics.
"""

import asyncio
import json
import re
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional
from uuid import uuid4

import anthropic
import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from tenacity.stop import stop_base

from config import settings as default_settings
from config.settings import Settings
from models.analysis import (
    AIAnalysisResult,
    AnalysisRequest,
    ConsumptionPattern,
    CustomerInsight,
    CustomerSegment,
    Provenance,
    ShoppingFrequency,
)
from models.base import utc_now, ensure_utc
from models.recommendation import (
    Recommendation,
    RecommendationPriority,
    RecommendationType,
    recommendation_id,
)
from services.consumption_service import basket_stats
from exceptions import (
    ModelError,
    ModelLowConfidenceError,
    ModelRequestError,
    ModelResponseParseError,
    ModelServerError,
    ModelThrottledError,
    ModelTimeoutError,
    ModelUnavailableError,
)

logger = structlog.get_logger(__name__)


# ===================
# RESPONSE SCHEMA
# ===================

class _Strict(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())


class ModelPattern(_Strict):
    product_id: str = Field(..., min_length=1)
    average_days_between_purchases: Optional[float] = Field(None, gt=0)
    predicted_next_purchase_date: Optional[datetime] = None
    confidence: float = Field(..., ge=0, le=1)


class ModelProfile(_Strict):
    segment: CustomerSegment
    shopping_frequency: Optional[ShoppingFrequency] = None
    favorite_products: list[str] = Field(default_factory=list)


class ModelRecommendation(_Strict):
    type: RecommendationType
    priority: RecommendationPriority
    confidence: float = Field(..., ge=0, le=1)
    product_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    impact: Optional[str] = None
    estimated_savings: Optional[float] = None
    days_until_action: Optional[int] = None
    recommended_quantity: Optional[int] = Field(None, ge=0)


class ModelAnalysis(_Strict):
    consumption_patterns: list[ModelPattern]
    customer_profile: ModelProfile
    recommendations: list[ModelRecommendation]
    confidence: float = Field(..., ge=0, le=1)


SYSTEM_PROMPT = """You are a retail inventory analyst. You receive one customer's recent purchases and product interactions and predict their consumption.

IMPORTANT: Return ONLY valid JSON, no markdown, no explanation, no code blocks.

Return JSON in this exact structure:
{
  "consumption_patterns": [
    {
      "product_id": "prod-1",
      "average_days_between_purchases": 10.0,
      "predicted_next_purchase_date": "2025-01-30T00:00:00Z",
      "confidence": 0.8
    }
  ],
  "customer_profile": {
    "segment": "frequent",
    "shopping_frequency": "weekly",
    "favorite_products": ["prod-1"]
  },
  "recommendations": [
    {
      "type": "reorder",
      "priority": "high",
      "confidence": 0.85,
      "product_id": "prod-1",
      "title": "Restock Premium Coffee Beans",
      "description": "Customer is expected to buy again within 3 days",
      "action": "Reorder 20 units",
      "impact": "Avoids a stockout",
      "estimated_savings": null,
      "days_until_action": 3,
      "recommended_quantity": 20
    }
  ],
  "confidence": 0.8
}

Rules:
- segment is one of: frequent, occasional, rare, browser, unknown
- shopping_frequency is one of: daily, weekly, biweekly, monthly, irregular, or null
- type is one of: reorder, optimize, discontinue, promotion
- priority is one of: high, medium, low
- every confidence is between 0.0 and 1.0
- only reference product ids that appear in the input"""


SleepFn = Callable[[float], Awaitable[None]]


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ModelError) and error.retryable


class stop_at_deadline(stop_base):
    """Stop when the upcoming backoff would end at or past the deadline."""

    def __init__(self, deadline: float, clock: Callable[[], float]):
        self.deadline = deadline
        self.clock = clock

    def __call__(self, retry_state) -> bool:
        return self.clock() + retry_state.upcoming_sleep >= self.deadline


class ModelGateway:
    """
    Customer analysis through the hosted model.

    client, sleep and clock are injectable so tests can drive the retry
    loop without a network or a real clock.
    """

    def __init__(
        self,
        client=None,
        config: Optional[Settings] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or default_settings
        self._client = client
        self._sleep = sleep
        self._clock = clock

    @property
    def client(self):
        if self._client is None:
            if not self.config.anthropic_api_key:
                raise ModelUnavailableError("ANTHROPIC_API_KEY not configured")
            self._client = anthropic.AsyncAnthropic(
                api_key=self.config.anthropic_api_key,
                max_retries=0,
            )
        return self._client

    @property
    def model_id(self) -> str:
        return self.config.ai_model_id

    # ===================
    # ANALYSIS
    # ===================

    async def analyze(
        self,
        request: AnalysisRequest,
        as_of: Optional[datetime] = None,
    ) -> AIAnalysisResult:
        """
        Analyze a customer with the hosted model.

        Raises:
            ModelUnavailableError: If the model is disabled or not configured
            ModelTimeoutError, ModelThrottledError, ModelServerError: When the
                last allowed attempt fails with a retryable error
            ModelRequestError: On a non-retryable upstream rejection
            ModelResponseParseError: If the answer does not match the schema
            ModelLowConfidenceError: If the answer's confidence is too low
        """
        if not self.config.ai_analysis_enabled:
            raise ModelUnavailableError("AI analysis disabled")
        client = self.client

        as_of = ensure_utc(as_of) or utc_now()
        prompt = self.build_prompt(request, as_of)
        deadline = self._clock() + self.config.model_deadline_seconds

        logger.info(
            "model_analysis_started",
            customer_id=request.customer_id,
            model=self.model_id,
            prompt_length=len(prompt)
        )

        retrying = AsyncRetrying(
            stop=(
                stop_after_attempt(self.config.model_max_retries + 1)
                | stop_at_deadline(deadline, self._clock)
            ),
            wait=(
                wait_exponential(multiplier=self.config.model_backoff_base_seconds)
                + wait_random(0, self.config.model_backoff_jitter_seconds)
            ),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            reraise=True,
        )

        attempts = 0

        async def attempt() -> AIAnalysisResult:
            nonlocal attempts
            attempts += 1
            timeout = min(
                self.config.model_request_timeout_seconds,
                deadline - self._clock(),
            )
            try:
                text = await self._invoke(client, prompt, timeout)
                return self.parse_response(text, request, as_of)
            except ModelError as e:
                logger.warning(
                    "model_attempt_failed",
                    customer_id=request.customer_id,
                    attempt=attempts,
                    code=e.code,
                    retryable=e.retryable
                )
                raise

        result = await retrying(attempt)

        logger.info(
            "model_analysis_completed",
            customer_id=request.customer_id,
            attempts=attempts,
            confidence=result.confidence,
            recommendations=len(result.recommendations)
        )
        return result

    async def _invoke(self, client, prompt: str, timeout: float) -> str:
        """One model call, with upstream failures mapped onto ModelError."""
        try:
            response = await asyncio.wait_for(
                client.messages.create(
                    model=self.model_id,
                    max_tokens=self.config.model_max_tokens,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}],
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise ModelTimeoutError(timeout)
        except anthropic.APITimeoutError:
            raise ModelTimeoutError(timeout)
        except anthropic.RateLimitError as e:
            raise ModelThrottledError(str(e))
        except anthropic.InternalServerError as e:
            raise ModelServerError(str(e), e.status_code)
        except anthropic.APIConnectionError as e:
            raise ModelServerError(f"Connection failed: {e}")
        except anthropic.APIStatusError as e:
            if e.status_code == 429:
                raise ModelThrottledError(str(e))
            if e.status_code >= 500:
                raise ModelServerError(str(e), e.status_code)
            raise ModelRequestError(str(e), e.status_code)

        return "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )

    # ===================
    # PROMPT
    # ===================

    def build_prompt(self, request: AnalysisRequest, as_of: datetime) -> str:
        """
        Customer summary for the model.

        Only the most recent prompt_history_limit purchases and interactions
        are included.
        """
        limit = self.config.prompt_history_limit
        purchases = sorted(request.purchase_history, key=lambda p: p.timestamp)[-limit:]
        interactions = sorted(request.interactions, key=lambda i: i.timestamp)[-limit:]

        payload = {
            "customer_id": request.customer_id,
            "analysis_date": as_of.isoformat(),
            "preferences": (
                request.profile.preferences.to_record() if request.profile else None
            ),
            "purchases": [
                {
                    "product_id": p.product_id,
                    "product_name": p.product_name,
                    "category": p.category,
                    "quantity": p.quantity,
                    "unit_price": p.unit_price,
                    "timestamp": p.timestamp.isoformat(),
                }
                for p in purchases
            ],
            "interactions": [
                {
                    "product_id": i.product_id,
                    "type": i.interaction_type.value,
                    "timestamp": i.timestamp.isoformat(),
                }
                for i in interactions
            ],
        }

        return (
            "Analyze this customer's consumption and recommend inventory actions.\n\n"
            f"{json.dumps(payload, indent=2)}"
        )

    # ===================
    # RESPONSE PARSING
    # ===================

    def parse_response(
        self,
        response_text: str,
        request: AnalysisRequest,
        as_of: datetime,
    ) -> AIAnalysisResult:
        """
        Validate the model's answer and build an AIAnalysisResult.

        Raises:
            ModelResponseParseError: On invalid JSON, any schema mismatch or a
                product id missing from the request
            ModelLowConfidenceError: If confidence < model_min_confidence
        """
        cleaned = response_text.strip()
        if cleaned.startswith("```"):
            cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
            cleaned = re.sub(r'\s*```$', '', cleaned)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error("model_json_parse_failed", response_preview=response_text[:500], error=str(e))
            raise ModelResponseParseError("Model response is not valid JSON")

        if not isinstance(data, dict):
            raise ModelResponseParseError("Model response is not a JSON object")

        try:
            parsed = ModelAnalysis.model_validate(data)
        except PydanticValidationError as e:
            logger.error("model_schema_mismatch", errors=e.error_count())
            raise ModelResponseParseError(
                "Model response does not match the analysis schema",
                details={"errors": [err["loc"] for err in e.errors()][:10]}
            )

        known = (
            {p.product_id for p in request.purchase_history}
            | {i.product_id for i in request.interactions}
        )
        referenced = (
            {p.product_id for p in parsed.consumption_patterns}
            | {r.product_id for r in parsed.recommendations}
            | set(parsed.customer_profile.favorite_products)
        )
        unknown = sorted(referenced - known)
        if unknown:
            logger.error("model_unknown_products", product_ids=unknown[:10])
            raise ModelResponseParseError(
                "Model response references products outside the customer's history",
                details={"product_ids": unknown[:10]}
            )

        if parsed.confidence < self.config.model_min_confidence:
            raise ModelLowConfidenceError(parsed.confidence, self.config.model_min_confidence)

        return self._to_result(parsed, request, as_of)

    def _to_result(
        self,
        parsed: ModelAnalysis,
        request: AnalysisRequest,
        as_of: datetime,
    ) -> AIAnalysisResult:
        generated_at = utc_now()
        names = {
            p.product_id: p.product_name
            for p in request.purchase_history if p.product_name
        }
        occasions, total_spent, average_basket = basket_stats(request.purchase_history)

        patterns = []
        for item in sorted(parsed.consumption_patterns, key=lambda p: p.product_id):
            predicted = ensure_utc(item.predicted_next_purchase_date)
            patterns.append(ConsumptionPattern(
                product_id=item.product_id,
                product_name=names.get(item.product_id),
                average_days_between_purchases=item.average_days_between_purchases,
                predicted_next_purchase_date=predicted,
                confidence=item.confidence,
                days_until_next_purchase=(
                    round((predicted - as_of).total_seconds() / 86400, 2)
                    if predicted else None
                ),
            ))

        recommendations = [
            Recommendation(
                **item.model_dump(),
                id=recommendation_id(request.customer_id, item.product_id, item.type),
                product_name=names.get(item.product_id),
                customer_id=request.customer_id,
                source=Provenance.MODEL.value,
                created_at=generated_at,
            )
            for item in parsed.recommendations
        ]

        return AIAnalysisResult(
            analysis_id=str(uuid4()),
            customer_id=request.customer_id,
            generated_at=generated_at,
            provenance=Provenance.MODEL,
            consumption_patterns=patterns,
            customer_profile=CustomerInsight(
                segment=parsed.customer_profile.segment,
                shopping_frequency=parsed.customer_profile.shopping_frequency,
                purchase_count=occasions,
                total_spent=total_spent,
                average_basket_value=average_basket,
                favorite_products=parsed.customer_profile.favorite_products,
                interaction_count=len(request.interactions),
            ),
            recommendations=recommendations,
            confidence=parsed.confidence,
            model_id=self.model_id,
        )


# Singleton instance for convenience
_model_gateway: Optional[ModelGateway] = None

def get_model_gateway() -> ModelGateway:
    """Get or create ModelGateway instance."""
    global _model_gateway
    if _model_gateway is None:
        _model_gateway = ModelGateway()
    return _model_gateway
