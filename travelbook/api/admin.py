"""
Admin area pages.

Both routes sit behind the access gate: the dashboard is only reached with a
credential present, the login page only without one.
"""
from flask import Blueprint, jsonify, current_app
from ..services.reward_config_service import get_reward_config_store
from ..utils.errors import service_unavailable
from ..utils.exceptions import PersistenceError

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/login', methods=['GET'])
def login_page():
    """Login page descriptor for the admin frontend."""
    routes = current_app.extensions['access_gate_routes']
    return jsonify({
        'page': 'login',
        'redirect_to': routes.dashboard_path,
        'cookie_name': routes.cookie_name,
    })


@admin_bp.route('/dashboard', methods=['GET'])
@admin_bp.route('/dashboard/<path:section>', methods=['GET'])
def dashboard(section=None):
    """Dashboard overview with the current reward program settings."""
    try:
        config = get_reward_config_store().get()
    except PersistenceError as e:
        return service_unavailable(e.message)

    options = config['redemptionOptions']
    return jsonify({
        'page': 'dashboard',
        'section': section,
        'rewards': {
            'points_per_dollar': config['pointsPerDollar'],
            'tier_requirements': config['tierRequirements'],
            'redemption_options': len(options),
            'active_redemption_options': sum(1 for o in options if o.get('isActive', True)),
            'last_updated': config['lastUpdated'],
        },
    })
