"""
Database models for the Travelbook admin platform.
"""
from .reward_config import RewardConfig, SINGLETON_KEY

__all__ = [
    'RewardConfig',
    'SINGLETON_KEY',
]
