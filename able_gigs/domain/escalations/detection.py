"""
Keyword based incident detection for support conversations

Each category scores 0.3 per keyword and 0.5 per phrase found, scaled by the
category weight. The best category counts as an incident at 0.4 or above.
"""

import secrets
import string
import time
from typing import Optional

from pydantic import BaseModel

INCIDENT_THRESHOLD = 0.4
KEYWORD_SCORE = 0.3
PHRASE_SCORE = 0.5

INCIDENT_PATTERNS: dict[str, dict] = {
    "harassment": {
        "keywords": [
            "harass", "harassment", "harassed", "harassing",
            "unwanted", "inappropriate", "creepy", "stalk",
            "stalking", "uncomfortable", "unwelcome", "persistent",
            "repeated", "pressure", "coerce", "coercion",
        ],
        "phrases": [
            "making me uncomfortable", "won't leave me alone",
            "keep asking me out", "touching me", "inappropriate comments",
            "sexual harassment", "workplace harassment", "verbal abuse",
            "intimidating me", "threatening me",
        ],
        "weight": 0.9,
    },
    "unsafe_work_conditions": {
        "keywords": [
            "unsafe", "dangerous", "hazard", "hazardous",
            "injury", "injured", "hurt", "accident", "fall",
            "slip", "trip", "cut", "burn", "exposed",
            "chemical", "toxic", "fumes", "no ventilation",
            "no safety equipment", "no training", "overworked",
        ],
        "phrases": [
            "unsafe working conditions", "not safe to work",
            "dangerous environment", "health hazard", "safety violation",
            "no safety equipment", "unsafe practices", "workplace injury",
            "accident waiting to happen", "unsafe workplace",
        ],
        "weight": 0.8,
    },
    "discrimination": {
        "keywords": [
            "discriminat", "racist", "sexist", "ageist", "homophobic",
            "transphobic", "prejudice", "bias", "unfair treatment",
            "treated differently", "because of my", "not hired because",
            "fired because", "paid less because",
        ],
        "phrases": [
            "discriminated against", "treated unfairly because",
            "not hired because of my", "fired because of my",
            "paid less because of my", "racist comments",
            "sexist remarks", "age discrimination",
        ],
        "weight": 0.85,
    },
    "threats": {
        "keywords": [
            "threat", "threaten", "threatening", "violence", "violent",
            "hurt you", "kill you", "harm", "revenge", "retaliate",
            "retaliation", "consequences", "pay for this", "get you",
            "destroy", "ruin", "blackmail", "extort",
        ],
        "phrases": [
            "threatening me", "making threats", "threat of violence",
            "threatened to hurt", "threatened to fire", "threatened to report",
            "intimidation tactics", "scare tactics",
        ],
        "weight": 0.95,
    },
    "inappropriate_behavior": {
        "keywords": [
            "inappropriate", "unprofessional", "rude", "disrespectful",
            "abusive", "bully", "bullying", "mean", "cruel",
            "insult", "insulting", "mock", "mocking", "belittle",
            "humiliate", "embarrass", "shame", "degrade",
        ],
        "phrases": [
            "inappropriate behavior", "unprofessional conduct",
            "being bullied", "treated badly", "disrespectful treatment",
            "abusive language", "verbal abuse", "hostile environment",
        ],
        "weight": 0.7,
    },
    "safety_concern": {
        "keywords": [
            "safety", "concern", "worried", "scared", "afraid",
            "fear", "anxious", "nervous", "unsafe", "risk",
            "danger", "hazard", "emergency", "urgent", "immediate",
        ],
        "phrases": [
            "safety concern", "worried about safety", "scared for my safety",
            "safety issue", "immediate safety concern", "urgent safety matter",
        ],
        "weight": 0.75,
    },
}

INCIDENT_TYPES = list(INCIDENT_PATTERNS) + ["other"]

SUGGESTED_ACTIONS = {
    "harassment": "I understand you may be experiencing harassment. This is serious and I want to help you report this properly.",
    "unsafe_work_conditions": "I'm concerned about the safety issues you've mentioned. Let's document this properly for your protection.",
    "discrimination": "Discrimination is unacceptable. I want to help you report this incident with all the necessary details.",
    "threats": "Threats are very serious. I need to help you report this immediately for your safety.",
    "inappropriate_behavior": "I'm sorry you're experiencing inappropriate behavior. Let's document this incident properly.",
    "safety_concern": "Your safety is our priority. Let's document this concern properly so we can address it.",
}
DEFAULT_ACTION = "I want to help you report this incident properly. Let's gather the necessary information."

BASE_SEVERITY = {
    "harassment": 3,
    "threats": 4,
    "discrimination": 3,
    "unsafe_work_conditions": 3,
    "inappropriate_behavior": 2,
    "safety_concern": 2,
    "other": 1,
}


class IncidentDetection(BaseModel):
    isIncident: bool
    incidentType: Optional[str] = None
    confidence: float
    detectedKeywords: list[str] = []
    suggestedAction: str = ""


def detect_incident(text: str) -> IncidentDetection:
    normalized = (text or "").lower().strip()

    best_confidence = 0.0
    best_type: Optional[str] = None
    best_keywords: list[str] = []

    for incident_type, pattern in INCIDENT_PATTERNS.items():
        found = [k for k in pattern["keywords"] if k in normalized]
        phrases = [p for p in pattern["phrases"] if p in normalized]
        confidence = (len(found) * KEYWORD_SCORE + len(phrases) * PHRASE_SCORE) * pattern["weight"]

        if confidence > best_confidence:
            best_confidence, best_type, best_keywords = confidence, incident_type, found + phrases

    is_incident = best_confidence >= INCIDENT_THRESHOLD
    return IncidentDetection(
        isIncident=is_incident,
        incidentType=best_type if is_incident else None,
        confidence=min(best_confidence, 1.0),
        detectedKeywords=best_keywords,
        suggestedAction=SUGGESTED_ACTIONS.get(best_type, DEFAULT_ACTION) if best_type else "",
    )


def get_incident_severity(incident_type: str, confidence: float) -> str:
    score = BASE_SEVERITY.get(incident_type, BASE_SEVERITY["other"]) + confidence * 2
    if score >= 5:
        return "CRITICAL"
    if score >= 4:
        return "HIGH"
    if score >= 3:
        return "MEDIUM"
    return "LOW"


def _base36(number: int) -> str:
    alphabet = string.digits + string.ascii_lowercase
    digits = ""
    while number:
        number, remainder = divmod(number, 36)
        digits = alphabet[remainder] + digits
    return digits or "0"


def generate_incident_id() -> str:
    """INC-<ms timestamp in base36>-<6 random chars>, upper case"""
    alphabet = string.digits + string.ascii_lowercase
    random_part = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"INC-{_base36(int(time.time() * 1000))}-{random_part}".upper()
