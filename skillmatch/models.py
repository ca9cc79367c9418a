"""Data models for listings, skill analysis and scored candidates."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Skill:
    name: str
    experience_years: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Skill":
        years = data.get("experience_years") or 0
        try:
            years = float(years)
        except (TypeError, ValueError):
            years = 0.0
        return cls(name=str(data.get("skill_name", "")).strip(), experience_years=years)

    def to_dict(self) -> dict[str, Any]:
        return {"skill_name": self.name, "experience_years": self.experience_years}


@dataclass
class AIAnalysis:
    estimated_salary: str = ""
    strengths: str = ""
    suggestions: str = ""
    structured_skills: list[Skill] = field(default_factory=list)
    search_prompt: str = ""
    key_skills: list[str] = field(default_factory=list)
    preferred_role: str = ""
    experience_level: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AIAnalysis":
        skills = [
            Skill.from_dict(s) for s in data.get("structured_skills") or []
            if isinstance(s, dict)
        ]
        key_skills = [str(s).strip() for s in data.get("key_skills") or [] if str(s).strip()]
        return cls(
            estimated_salary=str(data.get("estimated_salary", "")),
            strengths=str(data.get("strengths", "")),
            suggestions=str(data.get("suggestions", "")),
            structured_skills=skills,
            search_prompt=str(data.get("search_prompt", "")),
            key_skills=key_skills,
            preferred_role=str(data.get("preferred_role", "")),
            experience_level=str(data.get("experience_level", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimated_salary": self.estimated_salary,
            "strengths": self.strengths,
            "suggestions": self.suggestions,
            "structured_skills": [s.to_dict() for s in self.structured_skills],
            "search_prompt": self.search_prompt,
            "key_skills": list(self.key_skills),
            "preferred_role": self.preferred_role,
            "experience_level": self.experience_level,
        }


@dataclass
class ListingRecord:
    url: str
    title: str
    detail: str
    price: str
    period: str
    skills: str
    source: str
    posted_at: datetime
    other: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "detail": self.detail,
            "price": self.price,
            "period": self.period or "",
            "skills": self.skills,
            "source": self.source,
            "posted_at": self.posted_at.isoformat(),
        }


@dataclass
class ScoredCandidate:
    record: ListingRecord
    score: int
    match_count: int
