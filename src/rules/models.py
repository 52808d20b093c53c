from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class MarketplaceRules(BaseModel):
    listing_limit: int = Field(100, gt=0)
    max_buyers_per_lead: int | None = Field(None, gt=0)
    default_lead_price: float = Field(0.0, ge=0)


class QuotaRules(BaseModel):
    timezone: str = "UTC"
    yearly_anchor: Literal["calendar", "subscription"] = "calendar"

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


class AdmissionRules(BaseModel):
    max_cas_retries: int = Field(3, ge=1, le=20)
    top_up_policy: Literal["separate", "overflow"] = "separate"


class PlanRule(BaseModel):
    id: str
    name: str
    daily_limit: int = Field(ge=0)
    weekly_limit: int = Field(ge=0)
    yearly_limit: int = Field(ge=0)
    duration_days: int = Field(365, gt=0)
    price: float = Field(0.0, ge=0)
    is_active: bool = True


class TopUpRules(BaseModel):
    pack_size: int = Field(10, gt=0)
    pack_price: float = Field(1500.0, ge=0)


class SubscriptionRules(BaseModel):
    renewal_reminder_days: int = Field(7, gt=0)
    summary_horizon_days: int = Field(30, gt=0)


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    marketplace: MarketplaceRules = Field(default_factory=MarketplaceRules)
    quota: QuotaRules = Field(default_factory=QuotaRules)
    admission: AdmissionRules = Field(default_factory=AdmissionRules)
    plans: list[PlanRule]
    top_ups: TopUpRules = Field(default_factory=TopUpRules)
    subscriptions: SubscriptionRules = Field(default_factory=SubscriptionRules)
    ops: OpsRules = Field(default_factory=OpsRules)

    @model_validator(mode="after")
    def _unique_plan_ids(self) -> "Rules":
        ids = [p.id for p in self.plans]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"Duplicate plan ids: {', '.join(dupes)}")
        return self
