"""
Reward program configuration model.
"""
from datetime import datetime, timedelta, timezone
from ..extensions import db
from ..utils.reward_defaults import get_config_with_defaults, get_default_reward_config

_ONE_MICROSECOND = timedelta(microseconds=1)

# Only one live row; the unique key makes a racing lazy-create fail loudly
SINGLETON_KEY = 'default'


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RewardConfig(db.Model):
    """
    Loyalty program economics for the whole site.

    The document column holds everything except lastUpdated, which lives in
    its own column so it can be queried and compared directly.
    """
    __tablename__ = 'reward_configs'

    id = db.Column(db.Integer, primary_key=True)
    singleton_key = db.Column(db.String(20), unique=True, nullable=False, default=SINGLETON_KEY)

    document = db.Column(db.JSON, nullable=False, default=get_default_reward_config)

    last_updated = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<RewardConfig {self.singleton_key} updated={self.last_updated}>'

    def touch(self) -> datetime:
        """Advance last_updated to now, strictly later than its previous value."""
        now = utcnow()
        if self.last_updated and now <= self.last_updated:
            now = self.last_updated + _ONE_MICROSECOND
        self.last_updated = now
        return now

    def to_dict(self) -> dict:
        data = get_config_with_defaults(self.document)
        data['lastUpdated'] = self.last_updated.isoformat(timespec='microseconds') + 'Z' if self.last_updated else None
        return data
