"""Data returned by a MarketDataProvider."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from seo_inspector.core.scoring import Confidence


class KeywordMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: str
    search_volume: int = Field(ge=0)
    competition: int = Field(ge=0, le=100)   # 0-100 difficulty index
    cpc: float = Field(ge=0.0)
    source: Confidence = Confidence.SIMULATED


class Backlink(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    source_domain: str
    anchor_text: str
    link_type: Literal["dofollow", "nofollow"] = "dofollow"
    domain_authority: int = Field(ge=0, le=100)
    spam_score: int = Field(ge=0, le=100)


class BacklinkProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: str
    backlinks: list[Backlink] = Field(default_factory=list)
    source: Confidence = Confidence.SIMULATED

    @property
    def referring_domains(self) -> list[str]:
        return list(dict.fromkeys(b.source_domain for b in self.backlinks))


class CompetitorProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: str
    domain_authority: int = Field(ge=0, le=100)
    estimated_traffic: int = Field(ge=0)
    top_keywords: list[str] = Field(default_factory=list)
    source: Confidence = Confidence.SIMULATED


class RankEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: str
    current_rank: int = Field(ge=1, le=100)
    previous_rank: int = Field(ge=1, le=100)
    search_volume: int = Field(ge=0)
    difficulty: int = Field(ge=0, le=100)
    source: Confidence = Confidence.SIMULATED

    @property
    def change(self) -> int:
        """Positions gained since the previous check (positive = improved)."""
        return self.previous_rank - self.current_rank
