from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    plans = [e for e in events if e["type"] == "plan"]
    total = len(searches)

    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    query_counter: Counter[str] = Counter()
    for s in searches:
        query_counter[s.get("query", "").strip().lower()] += 1
    top_queries = [{"query": q, "count": c} for q, c in query_counter.most_common(10)]

    biased = sum(1 for s in searches if s.get("biased"))
    empty = sum(1 for s in searches if not s.get("error") and s.get("results_returned", 0) == 0)

    error_counter: Counter[str] = Counter()
    for e in searches + plans:
        if e.get("error"):
            error_counter[e["error"]] += 1

    return {
        "total_searches": total,
        "total_plans": len(plans),
        "avg_response_time_ms": avg_time,
        "top_queries": top_queries,
        "biased_rate": round(biased / total * 100, 1) if total else 0.0,
        "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        "errors": dict(error_counter),
    }
