"""
Points economy rules shared by the point-check view and the unlock guard.
"""
import math

from ..config import settings
from ..models.trip import TripAnalysis


def unlock_cost(analysis: TripAnalysis) -> int:
    """Points needed to unlock planning for an analysed route."""
    if analysis.is_international:
        return settings.international_unlock_cost
    return settings.national_unlock_cost


def can_afford(balance: int, analysis: TripAnalysis) -> bool:
    return balance >= unlock_cost(analysis)


def suggested_days(analysis: TripAnalysis) -> int:
    """Midpoint of the recommended range, rounded up."""
    return math.ceil((analysis.min_days + analysis.max_days) / 2)


def ad_reward() -> int:
    return settings.ad_reward_points
