"""Customer loyalty constants."""

from __future__ import annotations

from decimal import Decimal

from django.db import models


class MembershipLevel(models.TextChoices):
    SILVER = "SILVER", "Silver"
    GOLD = "GOLD", "Gold"
    DIAMOND = "DIAMOND", "Diamond"


# Highest threshold first.
MEMBERSHIP_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (5000, MembershipLevel.DIAMOND),
    (2500, MembershipLevel.GOLD),
    (1000, MembershipLevel.SILVER),
)

DEFAULT_POINTS_MULTIPLIER = Decimal("0.01")


def membership_level_for(points: int) -> str:
    """Return the membership level earned by *points* ("" below silver)."""
    for threshold, level in MEMBERSHIP_THRESHOLDS:
        if points >= threshold:
            return level
    return ""
