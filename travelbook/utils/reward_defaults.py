"""
Default reward program configuration and per-field bounds.

Shared between the reward config store, the rewards calculator and the CLI
to avoid circular imports. Keys are the camelCase wire names the admin
dashboards read.
"""
import copy

# Tier names, lowest to highest. Bronze is the implicit entry tier and has
# no threshold or benefits of its own.
TIER_ORDER = ('bronze', 'silver', 'gold', 'platinum')
RANKED_TIERS = TIER_ORDER[1:]

DEFAULT_REWARD_CONFIG = {
    'pointsPerDollar': 10,
    'signupBonus': 100,
    'referralBonus': {
        'user': 250,      # Awarded to the new user
        'referrer': 500,  # Awarded to the user who referred them
    },
    'reviewBonus': 50,
    'tierRequirements': {
        'silver': 500,
        'gold': 1500,
        'platinum': 3000,
    },
    'tierBenefits': {
        'silver': {
            'discount': 5,
            'priority': False,
        },
        'gold': {
            'discount': 10,
            'priority': True,
            'earlyAccess': True,
        },
        'platinum': {
            'discount': 15,
            'priority': True,
            'earlyAccess': True,
            'dedicatedSupport': True,
        },
    },
    'redemptionOptions': [],
}

BRONZE_BENEFITS = {
    'discount': 0,
    'priority': False,
}

# Redemption option row: required keys and defaults for optional ones
REDEMPTION_OPTION_REQUIRED = ('points', 'reward', 'value')
REDEMPTION_OPTION_DEFAULTS = {
    'isActive': True,
}

# Read-only keys accepted (and ignored) in an incoming patch
READ_ONLY_KEYS = ('lastUpdated',)

# Declarative bounds: dotted path -> (kind, min, max)
NUMBER = 'number'
BOOLEAN = 'boolean'

FIELD_RULES = {
    'pointsPerDollar': (NUMBER, 0, None),
    'signupBonus': (NUMBER, 0, None),
    'referralBonus.user': (NUMBER, 0, None),
    'referralBonus.referrer': (NUMBER, 0, None),
    'reviewBonus': (NUMBER, 0, None),
    'tierRequirements.silver': (NUMBER, 0, None),
    'tierRequirements.gold': (NUMBER, 0, None),
    'tierRequirements.platinum': (NUMBER, 0, None),
    'tierBenefits.silver.discount': (NUMBER, 0, 100),
    'tierBenefits.silver.priority': (BOOLEAN, None, None),
    'tierBenefits.gold.discount': (NUMBER, 0, 100),
    'tierBenefits.gold.priority': (BOOLEAN, None, None),
    'tierBenefits.gold.earlyAccess': (BOOLEAN, None, None),
    'tierBenefits.platinum.discount': (NUMBER, 0, 100),
    'tierBenefits.platinum.priority': (BOOLEAN, None, None),
    'tierBenefits.platinum.earlyAccess': (BOOLEAN, None, None),
    'tierBenefits.platinum.dedicatedSupport': (BOOLEAN, None, None),
}

REDEMPTION_OPTION_RULES = {
    'points': (NUMBER, 0, None),
    'value': (NUMBER, 0, None),
    'isActive': (BOOLEAN, None, None),
}


def get_default_reward_config() -> dict:
    """Fresh, fully-defaulted configuration document."""
    return copy.deepcopy(DEFAULT_REWARD_CONFIG)


def get_config_with_defaults(document: dict) -> dict:
    """
    Fill any keys missing from a stored document with their defaults.

    Nested objects are filled at every level; stored values always win.
    """
    return _fill_defaults(DEFAULT_REWARD_CONFIG, document or {})


def _fill_defaults(defaults: dict, stored: dict) -> dict:
    result = {}
    for key, default_value in defaults.items():
        value = stored.get(key, copy.deepcopy(default_value))
        if isinstance(default_value, dict) and isinstance(value, dict):
            value = _fill_defaults(default_value, value)
        result[key] = value
    for key, value in stored.items():
        if key not in result:
            result[key] = copy.deepcopy(value)
    return result
