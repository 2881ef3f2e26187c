from typing import Annotated, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Counters arrive as 64-bit integers; anything wider is rejected as a bad request.
Counter = Annotated[int, Field(ge=-2**63, le=2**63 - 1)]


class Lead(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    company: Optional[str] = None
    jobtitle: Optional[str] = None
    industry: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lead_status: Optional[str] = None
    email_open_count: Optional[Counter] = None
    email_click_count: Optional[Counter] = None
    num_deals: Optional[Counter] = None
    deal_amount: Optional[float] = None
    create_date: Optional[str] = None
    notes_last_updated: Optional[str] = None


class ScoreFactor(BaseModel):
    name: str
    weight: float
    value: float
    contribution: float


class LeadScore(BaseModel):
    email: str = ""
    score: int = 0
    label: str
    factors: List[ScoreFactor] = Field(default_factory=list)


class ScoringConfig(BaseModel):
    weights: Dict[str, Optional[float]] = Field(default_factory=dict)
    client_id: str = ""
    method: str = ""

    @field_validator("weights", mode="before")
    @classmethod
    def _null_weights(cls, v):
        return {} if v is None else v

    @field_validator("client_id", "method", mode="before")
    @classmethod
    def _null_str(cls, v):
        return "" if v is None else v


class LeadsRequest(BaseModel):
    leads: Optional[List[Lead]] = None
    client_id: Optional[str] = None
    api_key: Optional[str] = None
    email: Optional[str] = None


class LeadsResponse(BaseModel):
    scores: List[LeadScore]
    method: str
    client_id: str


class ErrorResponse(BaseModel):
    error: str
