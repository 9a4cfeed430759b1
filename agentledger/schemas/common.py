"""
Shared enums and the camelCase base model.

JSON bodies on the wire are camelCase; Python attributes stay snake_case.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RiskLevel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        if score >= 80:
            return cls.CRITICAL
        if score >= 60:
            return cls.HIGH
        if score >= 30:
            return cls.MEDIUM
        return cls.LOW

    @property
    def is_fraudulent(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.CRITICAL)


class AlertChannel(StrEnum):
    SLACK = "SLACK"
    EMAIL = "EMAIL"
    NOTION = "NOTION"


class AlertStatus(StrEnum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not AlertStatus.PENDING


class UserRole(StrEnum):
    COMPLIANCE = "COMPLIANCE"
    MANAGER = "MANAGER"
