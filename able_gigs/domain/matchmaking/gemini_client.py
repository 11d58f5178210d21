"""
Gemini client for worker matchmaking

Calls the Generative Language REST API with httpx and asks for a JSON
ranking. Any failure is raised as MatchingUnavailable so the caller can
fall back to deterministic scoring.
"""

import json
import logging

import httpx

from ...config import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_TIMEOUT

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

MATCHING_INSTRUCTIONS = """You match hospitality and event gig workers to a gig.
Score every worker from 0 to 100 for how well they fit the gig. Be strict about
skill relevance: unrelated skills must score low. Consider skills, years of
experience, hourly rate against the gig budget, bio and availability.
Give each worker up to three short reasons.
Respond ONLY with JSON of the form:
{"matches": [{"workerId": "...", "matchScore": 0, "matchReasons": ["..."]}]}"""


class MatchingUnavailable(Exception):
    """The AI matcher could not produce a usable ranking"""


def is_available() -> bool:
    return bool(GEMINI_API_KEY)


def _validate(result: dict, worker_ids: set[str]) -> list[dict]:
    matches = result.get("matches") if isinstance(result, dict) else None
    if not isinstance(matches, list):
        raise MatchingUnavailable("AI response has no matches list")

    valid = []
    for match in matches:
        if not isinstance(match, dict) or match.get("workerId") not in worker_ids:
            continue
        try:
            score = max(0, min(100, round(float(match.get("matchScore", 0)))))
        except (TypeError, ValueError):
            continue
        reasons = [str(r) for r in (match.get("matchReasons") or []) if r][:3]
        valid.append({"workerId": match["workerId"], "matchScore": score, "matchReasons": reasons})
    return valid


async def rank_workers(gig_context: dict, workers: list[dict]) -> list[dict]:
    """Ask Gemini to score `workers` for the gig; raises MatchingUnavailable"""
    if not is_available():
        raise MatchingUnavailable("GEMINI_API_KEY is not configured")

    payload = {
        "systemInstruction": {"parts": [{"text": MATCHING_INSTRUCTIONS}]},
        "contents": [
            {
                "role": "user",
                "parts": [{"text": json.dumps({"gig": gig_context, "workers": workers}, default=str)}],
            }
        ],
        "generationConfig": {"temperature": 0.2, "responseMimeType": "application/json"},
    }

    try:
        async with httpx.AsyncClient(timeout=GEMINI_TIMEOUT) as client:
            response = await client.post(
                GEMINI_API_URL.format(model=GEMINI_MODEL),
                params={"key": GEMINI_API_KEY},
                json=payload,
            )
            response.raise_for_status()
            data = response.json()
        text = data["candidates"][0]["content"]["parts"][0]["text"]
        result = json.loads(text)
    except httpx.HTTPError as e:
        logger.warning(f"⚠️ Gemini request failed: {e}")
        raise MatchingUnavailable(str(e)) from e
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning(f"⚠️ Unusable Gemini response: {e}")
        raise MatchingUnavailable(str(e)) from e

    matches = _validate(result, {w["workerId"] for w in workers})
    if workers and not matches:
        raise MatchingUnavailable("AI response matched none of the candidates")
    logger.info(f"✅ Gemini scored {len(matches)} workers")
    return matches
