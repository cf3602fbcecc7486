"""Traffic and difficulty signals derived from App Store search data.

Every sub-signal is scored 1-10. The weighted aggregate of the sub-signals is
normalized onto the provider's 0-10 scale, which the keyword scorer later
scales to 0-100.
"""

from datetime import datetime, timezone

TOP_N = 10  # top apps for detailed scoring
SATURATION_DEPTH = 25
MAX_RESULTS = 200

# Difficulty weights
TITLE_MATCH_WEIGHT = 4  # Do top apps target this keyword in their name?
RATING_COUNT_WEIGHT = 5  # How many ratings do top apps have? (proxy for installs)
SATURATION_WEIGHT = 3  # What % of results have the keyword in their title?
FRESHNESS_WEIGHT = 1  # Are top apps recently updated?

# Traffic weights
SUGGEST_COUNT_WEIGHT = 6  # How many autocomplete suggestions? (strongest signal)
SUGGEST_MATCH_WEIGHT = 2  # Does our exact keyword appear in suggestions?
RESULT_COUNT_WEIGHT = 1  # How many total results? (weak signal)
RATING_SPREAD_WEIGHT = 1  # Do mid-tier apps also have ratings?


def classify_title_match(keyword: str, title: str) -> str:
    """Classify how well an app title matches a keyword.

    Returns: "exact", "broad", "partial", or "none"
    """
    kw = keyword.lower().strip()
    t = title.lower()

    if kw in t:
        return "exact"

    kw_words = kw.split()
    if len(kw_words) > 1:
        t_words = t.split()
        if all(any(kw_w in tw for tw in t_words) for kw_w in kw_words):
            return "broad"
        if any(any(kw_w in tw for tw in t_words) for kw_w in kw_words):
            return "partial"

    return "none"


# ── Difficulty sub-signals ────────────────────────────────────────────────


def score_title_matches(keyword: str, apps: list[dict]) -> dict:
    top = apps[:TOP_N]
    matches = [classify_title_match(keyword, app.get("trackName", "")) for app in top]
    counts = {kind: matches.count(kind) for kind in ("exact", "broad", "partial", "none")}
    if not top:
        return {"counts": counts, "score": 1.0}

    raw = 10 * counts["exact"] + 5 * counts["broad"] + 2.5 * counts["partial"]
    score = max(1.0, min(10.0, raw / len(top)))
    return {"counts": counts, "score": round(score, 2)}


def score_rating_counts(apps: list[dict]) -> dict:
    """Average rating count of top apps; 0 -> 1, 100k+ -> 10"""
    top = apps[:TOP_N]
    if not top:
        return {"avg_ratings": 0, "max_ratings": 0, "score": 1.0}

    counts = [app.get("userRatingCount", 0) for app in top]
    avg = sum(counts) / len(counts)
    score = 1 + 9 * min(avg, 100_000) / 100_000
    return {"avg_ratings": round(avg), "max_ratings": max(counts), "score": round(score, 2)}


def score_saturation(keyword: str, apps: list[dict]) -> dict:
    top = apps[:SATURATION_DEPTH]
    if not top:
        return {"title_match_count": 0, "percentage": 0.0, "score": 1.0}

    kw = keyword.lower()
    has_keyword = sum(1 for app in top if kw in app.get("trackName", "").lower())
    pct = has_keyword / len(top)
    return {
        "title_match_count": has_keyword,
        "percentage": round(pct * 100, 1),
        "score": round(1 + 9 * pct, 2),
    }


def score_freshness(apps: list[dict], now: datetime | None = None) -> dict:
    """Recently updated leaders are harder to displace; 0 days -> 10, 500+ -> 1"""
    now = now or datetime.now(timezone.utc)
    days_list = []
    for app in apps[:TOP_N]:
        updated = app.get("currentVersionReleaseDate", app.get("releaseDate", ""))
        if not updated:
            continue
        try:
            dt = datetime.fromisoformat(updated.replace("Z", "+00:00"))
        except (ValueError, TypeError):
            continue
        days_list.append(max(0, (now - dt).days))

    if not days_list:
        return {"avg_days_since_update": None, "score": 1.0}

    avg_days = sum(days_list) / len(days_list)
    score = 1 + 9 * (500 - min(avg_days, 500)) / 500
    return {"avg_days_since_update": round(avg_days), "score": round(score, 2)}


# ── Traffic sub-signals ───────────────────────────────────────────────────


def score_suggestion_count(suggestions: list[str]) -> dict:
    count = len(suggestions)
    return {
        "suggestion_count": count,
        "suggestions": suggestions[:5],
        "score": round(1 + 9 * min(count, 10) / 10, 2),
    }


def score_suggestion_match(keyword: str, suggestions: list[str]) -> dict:
    kw = keyword.lower().strip()
    exact_match = any(kw == s.lower() for s in suggestions)
    prefix_match = any(s.lower().startswith(kw) for s in suggestions)

    if exact_match:
        score = 10.0
    elif prefix_match:
        score = 6.0
    elif suggestions:
        score = 3.0
    else:
        score = 1.0

    return {"exact_match": exact_match, "prefix_match": prefix_match, "score": score}


def score_result_count(apps: list[dict]) -> dict:
    count = len(apps)
    return {
        "result_count": count,
        "score": round(1 + 9 * min(count, MAX_RESULTS) / MAX_RESULTS, 2),
    }


def score_rating_spread(apps: list[dict]) -> dict:
    """Mid-tier apps (rank 10-25) with ratings indicate broad traffic"""
    mid_tier = apps[10:25] if len(apps) > 10 else apps
    if not mid_tier:
        return {"mid_tier_avg_ratings": 0, "score": 1.0}

    avg_mid = sum(app.get("userRatingCount", 0) for app in mid_tier) / len(mid_tier)
    return {
        "mid_tier_avg_ratings": round(avg_mid),
        "score": round(1 + 9 * min(avg_mid, 10_000) / 10_000, 2),
    }


# ── Composite scores ──────────────────────────────────────────────────────


def weighted_aggregate(weights: list[float], scores: list[float]) -> float:
    """Weighted aggregate of 1-10 scores, normalized to 0-10"""
    total_weight = sum(weights)
    weighted_sum = sum(w * s for w, s in zip(weights, scores))
    normalized = (weighted_sum - total_weight) / (9 * total_weight)
    return round(normalized * 10, 2)


def compute_difficulty(keyword: str, apps: list[dict], now: datetime | None = None) -> dict | None:
    """Difficulty on a 0-10 scale, or None when there are no ranking apps"""
    if not apps:
        return None

    title = score_title_matches(keyword, apps)
    ratings = score_rating_counts(apps)
    saturation = score_saturation(keyword, apps)
    freshness = score_freshness(apps, now=now)

    score = weighted_aggregate(
        [TITLE_MATCH_WEIGHT, RATING_COUNT_WEIGHT, SATURATION_WEIGHT, FRESHNESS_WEIGHT],
        [title["score"], ratings["score"], saturation["score"], freshness["score"]],
    )
    return {
        "score": score,
        "title_matches": title,
        "rating_counts": ratings,
        "saturation": saturation,
        "freshness": freshness,
    }


def compute_traffic(keyword: str, apps: list[dict], suggestions: list[str]) -> dict | None:
    """Traffic on a 0-10 scale, or None when there is no search signal at all"""
    if not apps and not suggestions:
        return None

    suggest_count = score_suggestion_count(suggestions)
    suggest_match = score_suggestion_match(keyword, suggestions)
    result_count = score_result_count(apps)
    spread = score_rating_spread(apps)

    score = weighted_aggregate(
        [SUGGEST_COUNT_WEIGHT, SUGGEST_MATCH_WEIGHT, RESULT_COUNT_WEIGHT, RATING_SPREAD_WEIGHT],
        [suggest_count["score"], suggest_match["score"], result_count["score"], spread["score"]],
    )
    return {
        "score": score,
        "suggestion_count": suggest_count,
        "suggestion_match": suggest_match,
        "result_count": result_count,
        "rating_spread": spread,
    }
