"""
Business services for Travelbook.
"""
from .reward_config_service import RewardConfigStore, build_reward_config_store, get_reward_config_store
from .rewards_calculator import RewardsCalculator
