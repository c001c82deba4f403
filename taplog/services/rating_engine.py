"""
Rating inference: free-text description + visit context → 11 ratings,
an overall score and a one-line review.

The engine asks a generative backend first (primary model, then fallback
model) and always finishes with a sanitization pass, so the vector it returns
is complete and in range whatever the backend produced. When nothing usable
comes back at all it returns a ``Degraded`` result carrying neutral ratings
instead of raising; rating submission must not depend on model availability.
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple, Union

from taplog.core.config import settings
from taplog.schemas.rating import RATING_KEYS, Context
from taplog.services.backends import GenerativeBackend, build_backend
from taplog.services.exceptions import BackendError

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 5
FALLBACK_REVIEW = "Balanced profile."

_BEER_KEYS = ("taste", "aroma", "smoothness", "temperature")
_AMBIANCE_KEYS = ("music", "lighting", "crowd_vibe", "cleanliness", "decor")

INSTRUCTIONS = (
    "Convert beer + ambiance descriptions into 0-10 integer ratings and a short review. "
    "Return ONLY JSON that satisfies the provided JSON schema. No extra prose."
)


# ── Result types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RatingOutcome:
    ratings: Dict[str, int]
    overall: int
    ai_review: str
    ai_model: Optional[str] = None


@dataclass(frozen=True)
class Inferred:
    value: RatingOutcome
    ok: bool = True


@dataclass(frozen=True)
class Degraded:
    value: RatingOutcome
    reason: str
    ok: bool = False


InferenceResult = Union[Inferred, Degraded]


# ── Pure helpers ──────────────────────────────────────────────────────────────

def build_output_schema() -> dict:
    score = {"type": "integer", "minimum": 0, "maximum": 10}
    properties: Dict[str, Any] = {key: dict(score) for key in RATING_KEYS}
    properties["overall"] = dict(score)
    properties["review"] = {"type": "string"}
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": [*RATING_KEYS, "overall", "review"],
    }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _is_finite_number(value: Any) -> bool:
    # bool is an int subclass but never a score
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _score(value: Any) -> Optional[int]:
    if not _is_finite_number(value):
        return None
    return round_half_up(clamp(float(value), 0, 10))


def sanitize_ratings(raw: Dict[str, Any]) -> Dict[str, int]:
    ratings = {}
    for key in RATING_KEYS:
        score = _score(raw.get(key))
        ratings[key] = NEUTRAL_SCORE if score is None else score
    return ratings


def _group_average(ratings: Dict[str, int], keys: Tuple[str, ...]) -> int:
    return round_half_up(sum(ratings[k] for k in keys) / len(keys))


def blend_overall(ratings: Dict[str, int], beers_already: int) -> int:
    """
    0.6 × beer average + 0.3 × ambiance average + 0.1 × sobriety.

    Sobriety is ``clamp(10 - beers_already, 0, 10)``, so each drink already
    had nudges the score down a little.
    """
    blended = (
        0.6 * _group_average(ratings, _BEER_KEYS)
        + 0.3 * _group_average(ratings, _AMBIANCE_KEYS)
        + 0.1 * clamp(10 - beers_already, 0, 10)
    )
    return round_half_up(blended)


def _band(score: int) -> str:
    if score >= 8:
        return "high"
    if score >= 5:
        return "moderate"
    return "low"


def template_review(ratings: Dict[str, int]) -> str:
    return (
        f"Tastes {_band(ratings['taste'])}, {_band(ratings['bitterness'])} bitterness; "
        f"{_band(ratings['smoothness'])} mouthfeel; {_band(ratings['crowd_vibe'])} crowd."
    )


def neutral_outcome() -> RatingOutcome:
    return RatingOutcome(
        ratings={key: NEUTRAL_SCORE for key in RATING_KEYS},
        overall=NEUTRAL_SCORE,
        ai_review=FALLBACK_REVIEW,
    )


# ── Backend payload handling ──────────────────────────────────────────────────

def _dig(data: Any, *path: Union[str, int]) -> Any:
    for step in path:
        if isinstance(step, int):
            if not isinstance(data, list) or len(data) <= step:
                return None
        elif not isinstance(data, dict):
            return None
        data = data[step] if isinstance(step, int) else data.get(step)
    return data


def _first_output_text(data: Any) -> Any:
    content = _dig(data, "output", 0, "content")
    if not isinstance(content, list):
        return None
    for part in content:
        if isinstance(part, dict) and part.get("type") == "output_text":
            return part.get("text")
    return None


def extract_payload_text(response: Any) -> Optional[str]:
    """
    Find the generated JSON text in a backend response.

    Providers (and their versions) put it in different places, so try the
    known locations in order and return None when none holds a string.
    """
    if response is None:
        return None

    if not isinstance(response, (dict, str)):
        text = getattr(response, "text", None)
        if isinstance(text, str) and text.strip():
            return text
        if hasattr(response, "model_dump"):
            response = response.model_dump()

    if isinstance(response, str):
        return response if response.strip() else None

    candidates = (
        _dig(response, "output_text"),
        _first_output_text(response),
        _dig(response, "output", 0, "content", 0, "text"),
        _dig(response, "choices", 0, "message", "content"),
        _dig(response, "candidates", 0, "content", "parts", 0, "text"),
        _dig(response, "response"),
        _dig(response, "text"),
    )
    for text in candidates:
        if isinstance(text, str) and text.strip():
            return text
    return None


def parse_payload(raw: str) -> Dict[str, Any]:
    """JSON object from the payload text; tolerates markdown fences, else {}."""
    clean = re.sub(r"```(?:json)?", "", raw).strip()
    for candidate in (clean, _braced(clean)):
        if candidate is None:
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    logger.warning("Could not parse rating JSON: %s", raw[:200])
    return {}


def _braced(text: str) -> Optional[str]:
    match = re.search(r"\{.*\}", text, re.DOTALL)
    return match.group() if match else None


# ── Engine ────────────────────────────────────────────────────────────────────

class RatingEngine:
    """Backend call with model fallback, then sanitization. Never raises."""

    def __init__(
        self,
        backend: GenerativeBackend,
        primary_model: str,
        fallback_model: str,
        timeout_seconds: float = 12.0,
    ):
        self.backend = backend
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.timeout_seconds = timeout_seconds
        self.schema = build_output_schema()

    async def infer(
        self,
        description: str,
        context: Context,
        venue_hint: Optional[str] = None,
    ) -> InferenceResult:
        try:
            payload = self._build_payload(description, context, venue_hint)
            raw, model = await self._generate(payload)
            return Inferred(self._finalize(parse_payload(raw), context, model))
        except Exception as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.error("Rating inference failed, returning neutral ratings: %s", reason)
            return Degraded(neutral_outcome(), reason=reason)

    def _build_payload(
        self,
        description: str,
        context: Context,
        venue_hint: Optional[str],
    ) -> str:
        data = {
            "description": description,
            "context": context.model_dump(),
            "beerMeta": {"name": venue_hint} if venue_hint else {},
        }
        return f"Data:\n{json.dumps(data)}"

    async def _generate(self, payload: str) -> Tuple[str, str]:
        try:
            return await self._call(self.primary_model, payload), self.primary_model
        except Exception as exc:
            logger.warning(
                "Primary model %s failed (%s), trying %s",
                self.primary_model, str(exc) or exc.__class__.__name__, self.fallback_model,
            )
        return await self._call(self.fallback_model, payload), self.fallback_model

    async def _call(self, model: str, payload: str) -> str:
        response = await asyncio.wait_for(
            self.backend.generate(
                instructions=INSTRUCTIONS,
                schema=self.schema,
                payload=payload,
                model=model,
            ),
            timeout=self.timeout_seconds,
        )
        text = extract_payload_text(response)
        if text is None:
            raise BackendError(f"{model} returned no text payload")
        return text

    def _finalize(self, parsed: Dict[str, Any], context: Context, model: str) -> RatingOutcome:
        ratings = sanitize_ratings(parsed)

        overall = _score(parsed.get("overall"))
        if overall is None:
            overall = blend_overall(ratings, context.beers_already)

        review = parsed.get("review")
        if not isinstance(review, str) or not review.strip():
            review = template_review(ratings)

        return RatingOutcome(ratings=ratings, overall=overall, ai_review=review, ai_model=model)


@lru_cache
def get_rating_engine() -> RatingEngine:
    return RatingEngine(
        backend=build_backend(settings),
        primary_model=settings.AI_MODEL_PRIMARY,
        fallback_model=settings.AI_MODEL_FALLBACK,
        timeout_seconds=settings.AI_TIMEOUT_SECONDS,
    )
