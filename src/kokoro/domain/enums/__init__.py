"""Domain enums package."""

from kokoro.domain.enums.risk_level import Phase, RiskLevel

__all__ = ["Phase", "RiskLevel"]
