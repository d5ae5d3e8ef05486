"""OrderWarden tracking core package."""

from .config import ProviderConfig, RiskConfig, SweepConfig

__all__ = ["ProviderConfig", "RiskConfig", "SweepConfig"]
