"""
Deterministic worker scoring

Used to pick each worker's headline skill and as the ranking whenever the
AI matcher is unavailable or returns something unusable.
"""

from typing import Any, Optional

# (gig keyword, skill keywords, score); first hit wins
_SKILL_RULES: list[tuple[tuple[str, ...], tuple[str, ...], int]] = [
    # Direct matches
    (("baker",), ("baker", "cake", "pastry"), 100),
    (("chef",), ("chef", "cook"), 100),
    (("server",), ("server", "waiter", "bartender"), 100),
    (("bartender",), ("bartender", "mixologist"), 100),
    (("waiter",), ("waiter", "server"), 100),
    (("cook",), ("cook", "chef"), 100),
    # Related matches
    (("baker",), ("chef", "cook"), 80),
    (("server",), ("chef", "cook"), 70),
    (("bartender",), ("server", "waiter"), 80),
    (("waiter",), ("bartender", "server"), 80),
    (("chef",), ("baker", "pastry"), 80),
    # Same line of work
    (("server", "waiter", "bartender"), ("hospitality", "service", "customer"), 60),
    (("chef", "cook", "baker"), ("food", "kitchen", "culinary"), 60),
    (("event", "catering", "party"), ("event", "catering", "party"), 60),
]
_GENERIC_SKILL_SCORE = 30

_BIO_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("baker", ("baker", "cake", "pastry")),
    ("chef", ("chef", "cook")),
    ("server", ("server", "waiter", "bartender")),
    ("bartender", ("bartender", "mixologist")),
]


def _field(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _skill_keyword_score(gig_text: str, skill_name: str) -> int:
    for gig_words, skill_words, score in _SKILL_RULES:
        if any(w in gig_text for w in gig_words) and any(w in skill_name for w in skill_words):
            return score
    return _GENERIC_SKILL_SCORE


def find_most_relevant_skill(skills: list, gig_title: str, gig_description: str) -> tuple[Optional[Any], float]:
    """
    Pick the skill that best fits the gig and its relevance score.

    Keyword family score, plus up to 20 for experience (2 per year) and 10
    when the worker charges more than 15/hour. A lone skill scores 50.
    """
    if not skills:
        return None, 0
    if len(skills) == 1:
        return skills[0], 50

    gig_text = f"{gig_title} {gig_description}".lower()
    best_skill, best_score = skills[0], 0

    for skill in skills:
        score = _skill_keyword_score(gig_text, (_field(skill, "name") or "").lower())

        years = _number(_field(skill, "experience_years", _field(skill, "experienceYears")))
        if years > 0:
            score += min(years * 2, 20)
        if _number(_field(skill, "agreed_rate", _field(skill, "agreedRate"))) > 15:
            score += 10

        if score > best_score:
            best_skill, best_score = skill, score

    return best_skill, best_score


def _format_amount(value: float) -> str:
    return f"{value:g}"


def score_worker(worker: dict, gig_context: dict) -> dict:
    """Fallback score (0-100) with at most three human readable reasons"""
    title = gig_context.get("title") or ""
    description = gig_context.get("description") or ""
    gig_text = f"{title} {description}".lower()
    gig_rate = _number(gig_context.get("hourlyRate"))

    skill, relevance = find_most_relevant_skill(worker.get("skills") or [], title, description)
    experience = _number(_field(skill, "experienceYears")) if skill else 0
    rate = _number(_field(skill, "agreedRate")) if skill else 0
    bio = (worker.get("bio") or "").lower()

    score = 50.0
    reasons: list[str] = []

    if skill:
        score += min(relevance * 0.3, 30)
        reasons.append(f"Relevant {_field(skill, 'name')} experience ({_format_amount(relevance)}% match)")

    if bio:
        for keyword, bio_words in _BIO_RULES:
            if keyword in gig_text and any(w in bio for w in bio_words):
                score += 15
                reasons.append("Bio mentions relevant experience")
                break

    if experience > 0:
        if experience >= 5:
            score += 15
        elif experience >= 2:
            score += 10
        else:
            score += 5
        reasons.append(f"{_format_amount(experience)} years of experience")

    if rate > 0 and gig_rate > 0:
        difference_percent = abs(rate - gig_rate) / gig_rate * 100
        if difference_percent <= 20:
            score += 10
            reasons.append(f"Rate matches budget ({_format_amount(rate)}/hour)")
        elif difference_percent <= 50:
            score += 5
            reasons.append(f"Rate within range ({_format_amount(rate)}/hour)")
        elif rate < gig_rate:
            score += 3
            reasons.append(f"Competitive rate ({_format_amount(rate)}/hour)")

    if worker.get("location"):
        score += 5
        reasons.append(f"Located in {worker['location']}")

    if not reasons:
        reasons = ["Available for work", "Professional service provider"]

    return {
        "workerId": worker["workerId"],
        "workerName": worker.get("workerName"),
        "matchScore": round(min(score, 100)),
        "matchReasons": reasons[:3],
    }


def fallback_matches(gig_context: dict, workers: list[dict]) -> list[dict]:
    return [score_worker(w, gig_context) for w in workers]
