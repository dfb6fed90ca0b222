"""
Rewards API endpoints for the Travelbook loyalty program.

Handles:
- Reward configuration (admin): read, partial update, full update
- Tier lookup for a points balance
- Points earned for a booking amount
- Redemption catalog listing
"""
import math
from flask import Blueprint, request, jsonify
from ..services.reward_config_service import get_reward_config_store
from ..services.rewards_calculator import RewardsCalculator
from ..utils.errors import bad_request, service_unavailable, validation_failed
from ..utils.exceptions import PersistenceError, RewardConfigValidationError, ValidationError
from ..utils.reward_defaults import TIER_ORDER

rewards_bp = Blueprint('rewards', __name__)


def _parse_number(name: str, required: bool = True):
    raw = request.args.get(name)
    if raw is None or raw == '':
        if required:
            raise ValidationError(f'{name} is required', field=name)
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f'{name} must be a number', field=name)
    if not math.isfinite(value):
        raise ValidationError(f'{name} must be a number', field=name)
    if value.is_integer():
        return int(value)
    return value


def _calculator() -> RewardsCalculator:
    return RewardsCalculator(get_reward_config_store().get())


# ==============================================================================
# CONFIGURATION (Admin)
# ==============================================================================

@rewards_bp.route('/config', methods=['GET'])
def get_config():
    """Get the reward program configuration."""
    try:
        config = get_reward_config_store().get()
    except PersistenceError as e:
        return service_unavailable(e.message, details={'error': str(e.original_error)})

    return jsonify({'config': config})


@rewards_bp.route('/config', methods=['PATCH', 'PUT'])
def update_config():
    """
    Update the reward program configuration.

    PATCH and PUT share merge semantics: nested objects merge field by
    field, redemptionOptions is replaced as a whole. Any out-of-bounds
    field rejects the entire request.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return bad_request('Request body must be a JSON object')

    try:
        config = get_reward_config_store().update(data)
    except RewardConfigValidationError as e:
        return validation_failed(e.message, e.errors)
    except PersistenceError as e:
        return service_unavailable(e.message, details={'error': str(e.original_error)})

    return jsonify({'success': True, 'config': config})


# ==============================================================================
# MEMBER-FACING CALCULATIONS
# ==============================================================================

@rewards_bp.route('/tier', methods=['GET'])
def get_tier():
    """
    Tier standing for a points balance.

    Query params:
        points: Cumulative points (required)
    """
    try:
        points = _parse_number('points')
        summary = _calculator().tier_summary(points)
    except ValidationError as e:
        return bad_request(e.message)
    except PersistenceError as e:
        return service_unavailable(e.message)

    return jsonify(summary)


@rewards_bp.route('/earn', methods=['GET'])
def get_earned_points():
    """
    Points earned for a booking.

    Query params:
        amount: Booking amount in dollars (required)
        tier: Member tier, to include the tier discount (optional)
    """
    tier = request.args.get('tier')
    if tier is not None and tier not in TIER_ORDER:
        return bad_request(f'tier must be one of: {", ".join(TIER_ORDER)}')

    try:
        amount = _parse_number('amount')
        calc = _calculator()
        result = {
            'amount': amount,
            'points': calc.points_for_amount(amount),
        }
        if tier:
            result['tier'] = tier
            result['discount'] = calc.discount_for(tier, amount)
    except ValidationError as e:
        return bad_request(e.message)
    except PersistenceError as e:
        return service_unavailable(e.message)

    return jsonify(result)


@rewards_bp.route('/bonuses', methods=['GET'])
def get_bonuses():
    """Signup, review and referral bonus amounts."""
    try:
        return jsonify(_calculator().bonuses())
    except PersistenceError as e:
        return service_unavailable(e.message)


@rewards_bp.route('/redemption-options', methods=['GET'])
def list_redemption_options():
    """
    Redemption catalog in display order.

    Query params:
        include_inactive: Include inactive rows (default false)
        points: Only rows affordable with this balance (optional)
    """
    include_inactive = request.args.get('include_inactive', 'false').lower() == 'true'

    try:
        points = _parse_number('points', required=False)
        calc = _calculator()
        if points is not None:
            options = calc.affordable_options(points)
        else:
            options = calc.redemption_options(include_inactive=include_inactive)
    except ValidationError as e:
        return bad_request(e.message)
    except PersistenceError as e:
        return service_unavailable(e.message)

    return jsonify({'options': options, 'count': len(options)})
