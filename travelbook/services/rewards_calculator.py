"""
Rewards Calculator.

Derives earned points, tiers and benefits from a reward configuration
document. Pure functions of the document; no storage access.

    calc = RewardsCalculator(store.get())
    calc.points_for_amount(249.99)   # -> 2499
    calc.tier_for_points(1600)       # -> 'gold'
"""
import math
from typing import Any, Dict, List, Optional

from ..utils.exceptions import ValidationError
from ..utils.reward_defaults import BRONZE_BENEFITS, RANKED_TIERS, TIER_ORDER


class RewardsCalculator:
    """Point and tier math for one configuration snapshot."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config

    # ==================== Earning ====================

    def points_for_amount(self, amount: float) -> int:
        """Points earned for a booking amount, rounded down."""
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
            raise ValidationError('Amount must be a number', field='amount')
        if amount < 0:
            raise ValidationError('Amount cannot be negative', field='amount')
        return int(math.floor(amount * self.config['pointsPerDollar']))

    def bonuses(self) -> Dict[str, Any]:
        return {
            'signup': self.config['signupBonus'],
            'review': self.config['reviewBonus'],
            'referral': dict(self.config['referralBonus']),
        }

    # ==================== Tiers ====================

    def tier_for_points(self, points: float) -> str:
        """Highest tier whose threshold the points reach; bronze otherwise."""
        requirements = self.config['tierRequirements']
        for tier in reversed(RANKED_TIERS):
            if points >= requirements[tier]:
                return tier
        return 'bronze'

    def next_tier(self, tier: str) -> Optional[str]:
        index = TIER_ORDER.index(tier)
        if index < len(TIER_ORDER) - 1:
            return TIER_ORDER[index + 1]
        return None

    def points_to_next_tier(self, points: float) -> float:
        nxt = self.next_tier(self.tier_for_points(points))
        if nxt is None:
            return 0
        return max(self.config['tierRequirements'][nxt] - points, 0)

    def tier_benefits(self, tier: str) -> Dict[str, Any]:
        if tier == 'bronze':
            return dict(BRONZE_BENEFITS)
        return dict(self.config['tierBenefits'][tier])

    def tier_summary(self, points: float) -> Dict[str, Any]:
        """Everything a profile page needs about a member's standing."""
        if isinstance(points, bool) or not isinstance(points, (int, float)) or points < 0:
            raise ValidationError('Points must be a non-negative number', field='points')

        tier = self.tier_for_points(points)
        return {
            'points': points,
            'tier': tier,
            'next_tier': self.next_tier(tier),
            'points_to_next_tier': self.points_to_next_tier(points),
            'benefits': self.tier_benefits(tier),
        }

    def discount_for(self, tier: str, amount: float) -> float:
        """Tier discount on a booking amount, in currency units."""
        pct = self.tier_benefits(tier)['discount']
        return round(amount * pct / 100.0, 2)

    # ==================== Redemption ====================

    def redemption_options(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Catalog rows in display order."""
        options = self.config.get('redemptionOptions') or []
        if include_inactive:
            return [dict(o) for o in options]
        return [dict(o) for o in options if o.get('isActive', True)]

    def affordable_options(self, points: float) -> List[Dict[str, Any]]:
        return [o for o in self.redemption_options() if o['points'] <= points]
