from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high"]
RiskProfile = Literal["conservative", "medium_risk", "high_risk"]


class CamelModel(BaseModel):
    """Output schema serialised with camelCase keys (model_dump(by_alias=True))."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class TraderProfile(CamelModel):
    total_trades: int = 0
    unique_dex_count: int = 0
    unique_token_count: int = 0
    preferred_dex: str = ""
    avg_time_between_trades: float = 0.0
    trading_frequency: float = 0.0
    risk_profile: RiskProfile = "conservative"


class PatternFlags(CamelModel):
    phishing: bool = False
    rug_pull: bool = False
    pump_and_dump: bool = False
    honeypot: bool = False


class ScamAnalysis(CamelModel):
    risk_level: RiskLevel = "low"
    scam_probability: float = 0.0
    warnings: List[str] = Field(default_factory=list)
    detected_patterns: PatternFlags = Field(default_factory=PatternFlags)
    # Detectors that raised instead of answering, keyed by flag name
    detector_errors: Dict[str, str] = Field(default_factory=dict)


class AdvisoryAnalysis(CamelModel):
    risk_assessment: str = "unknown"
    confidence: float = 0.0
    detected_patterns: List[str] = Field(default_factory=list)


class SophisticatedAnalysis(CamelModel):
    patterns: List[str] = Field(default_factory=list)
    risk_level: RiskLevel = "low"
    confidence: float = 0.0


class Timespan(BaseModel):
    start: str = ""
    end: str = ""
