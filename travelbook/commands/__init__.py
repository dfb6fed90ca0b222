"""
CLI Commands for Travelbook.

Usage:
    flask rewards seed                                    # Create tables and default config
    flask rewards show                                    # Print the current config
    flask rewards set tierBenefits.gold.discount 12       # Patch one field
"""
from .rewards import init_app as init_reward_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_reward_commands(app)
