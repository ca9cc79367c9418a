"""Turn a free-text skill sheet into a structured, priority-ordered analysis.

Talks to any OpenAI-compatible chat endpoint (OpenRouter by default).
"""
from __future__ import annotations

import json

from openai import OpenAI, OpenAIError, RateLimitError

from skillmatch.config import analyzer_base_url, analyzer_model, get_env
from skillmatch.errors import AnalysisError, AnalysisQuotaExceeded
from skillmatch.log import get_logger
from skillmatch.models import AIAnalysis
from skillmatch.retry import retry

log = get_logger(__name__)

TEMPERATURE = 0.7

SYSTEM_PROMPT = """You are an expert in matching IT engineers with project listings. \
Analyse the user's skill sheet in depth and answer with JSON optimised for searching listings.

Return JSON in exactly this shape (no other text):
{
  "estimated_salary": "monthly rate range, e.g. 600k-800k JPY",
  "strengths": "concrete description of strengths",
  "suggestions": "suggestions for the next career step",
  "structured_skills": [
    {"skill_name": "skill name", "experience_years": 0}
  ],
  "search_prompt": "prompt optimised for searching listings",
  "key_skills": ["most important skill 1", "most important skill 2", "most important skill 3"],
  "preferred_role": "best-fit role, e.g. frontend engineer, full-stack developer",
  "experience_level": "one of: junior / intermediate / senior / expert"
}

Rules:
- Return valid JSON only. Do not wrap it in Markdown code blocks.
- Include every field.
- Order key_skills by importance, most important first.
"""

_QUOTA_MARKERS = ("quota", "insufficient_quota", "429", "rate limit")
_PERMANENT_STATUS = {400, 401, 402, 403, 404, 429}


def is_quota_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    if getattr(exc, "status_code", None) in (402, 429):
        return True
    msg = str(exc).lower()
    return any(m in msg for m in _QUOTA_MARKERS)


def _is_permanent(exc: BaseException) -> bool:
    return is_quota_error(exc) or getattr(exc, "status_code", None) in _PERMANENT_STATUS


def strip_code_fence(text: str) -> str:
    cleaned = (text or "").strip()
    for prefix in ("```json", "```"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
            break
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_analysis(text: str) -> AIAnalysis:
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        log.error("Failed to parse analysis response. Raw: %s", (text or "")[:500])
        raise AnalysisError(f"failed to parse analysis JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AnalysisError("analysis response is not a JSON object")
    return AIAnalysis.from_dict(data)


@retry(max_attempts=2, base_delay=1.5, retryable=(OpenAIError, OSError), give_up=_is_permanent)
def _complete(api_key: str, base_url: str, model: str, message: str) -> str:
    client = OpenAI(api_key=api_key, base_url=base_url)
    r = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": message},
        ],
        temperature=TEMPERATURE,
    )
    if not r.choices:
        raise AnalysisError("empty choices from analysis provider")
    return (r.choices[0].message.content or "").strip()


def analyze_skills(
    message: str,
    *,
    api_key: str | None = None,
    model: str | None = None,
    base_url: str | None = None,
) -> AIAnalysis:
    api_key = api_key or get_env("OPENROUTER_API_KEY")
    if not api_key:
        raise AnalysisError("OPENROUTER_API_KEY not set")
    model = model or analyzer_model()

    try:
        content = _complete(api_key, base_url or analyzer_base_url(), model, message)
    except (OpenAIError, OSError) as exc:
        if is_quota_error(exc):
            raise AnalysisQuotaExceeded(f"analysis quota exceeded: {exc}") from exc
        raise AnalysisError(f"analysis call failed: {exc}") from exc

    analysis = parse_analysis(content)
    log.info(
        "Skill analysis via %s: key_skills=%s, structured=%d",
        model, analysis.key_skills, len(analysis.structured_skills),
    )
    return analysis
