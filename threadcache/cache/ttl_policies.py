"""
TTL configuration per thread tier.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .core import ThreadTier

THREAD_TTL = 15 * 60  # 15 minutes


@dataclass(frozen=True)
class TtlPolicy:
    """Timing parameters for the TtlCell of one tier (seconds)."""
    max_age: float
    early_refresh: Optional[float] = None
    stale_grace: Optional[float] = None


# Defaults by tier
TTL_CONFIG: Dict[ThreadTier, TtlPolicy] = {
    ThreadTier.SUMMARY: TtlPolicy(max_age=THREAD_TTL),
    ThreadTier.COMPLETE: TtlPolicy(max_age=THREAD_TTL),
}


def get_ttl_for_tier(tier: ThreadTier, settings: Optional[Any] = None) -> TtlPolicy:
    """
    Get the TTL policy for a tier, overlaid with configured values.

    Args:
        tier: The thread tier
        settings: Object with ``<tier>_max_age_seconds``,
            ``<tier>_early_refresh_seconds`` and ``<tier>_stale_grace_seconds``
            attributes (e.g. config.settings.Settings); None means defaults

    Returns:
        TtlPolicy for cells of that tier
    """
    policy = TTL_CONFIG[tier]
    if settings is None:
        return policy

    prefix = tier.value
    overrides = {}
    max_age = getattr(settings, f"{prefix}_max_age_seconds", None)
    if max_age is not None:
        if max_age <= 0:
            raise ValueError(f"{prefix}_max_age_seconds must be positive, got {max_age}")
        overrides["max_age"] = max_age

    for field_name in ("early_refresh", "stale_grace"):
        value = getattr(settings, f"{prefix}_{field_name}_seconds", None)
        if value is not None:
            if value < 0:
                raise ValueError(f"{prefix}_{field_name}_seconds must not be negative, got {value}")
            overrides[field_name] = value

    return replace(policy, **overrides) if overrides else policy
