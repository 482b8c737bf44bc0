from __future__ import annotations

from typing import Any, Mapping, Optional

DEFAULT_PROFILE = {
    "stack": ["Python", "FastAPI", "React", "Next.js", "PostgreSQL", "AI/LLM automation"],
    "rate": "$50-100/hr",
    "min_fixed_budget": "$1,500",
}

BULK_PARSE_SYSTEM = """You are a marketplace job analyst for a freelance developer.

Developer profile:
{profile}

The user message is raw text copied from a job search results page. Extract
every individual listing in it.

For each listing extract:
- title: the listing title
- description_snippet: the first ~200 characters of the description copied
  VERBATIM. Do not paraphrase; this text is used for duplicate detection.
- budget_display, budget_type ("fixed" | "hourly" | "unknown")
- client_location, client_spend, client_rating, proposals_count (as shown)
- has_hire: true if the listing shows someone was already hired
- skills: list of skill tags
- posted_at: the posted label as shown, e.g. "2 hours ago" or "yesterday"

Score each listing 1-5 on stack fit, budget, client quality, feasibility for a
solo developer and demo potential. An existing hire is a strong negative. New
clients without history are neutral.

Verdicts: GO (score >= 4), NEEDS_REVIEW (2.5 to 3.9), NO-GO (below 2.5).
ai_reasoning: one sentence on what they want built, then one or two short
sentences on the score.

Return ONLY JSON, no markdown:
{{"jobs": [{{"title": str, "description_snippet": str | null,
"budget_display": str | null, "budget_type": str, "client_location": str | null,
"client_spend": str | null, "client_rating": str | null,
"proposals_count": str | null, "has_hire": bool, "skills": [str],
"posted_at": str | null, "ai_score": number, "ai_verdict": str,
"ai_reasoning": str}}], "total_found": int}}
"""


def _format_profile(profile: Mapping[str, Any]) -> str:
    lines = []
    for key, value in profile.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        lines.append(f"- {str(key).replace('_', ' ')}: {value}")
    return "\n".join(lines)


def build_system_prompt(profile: Optional[Mapping[str, Any]] = None) -> str:
    return BULK_PARSE_SYSTEM.format(profile=_format_profile(profile or DEFAULT_PROFILE))
