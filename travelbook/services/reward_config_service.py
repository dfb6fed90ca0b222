"""
Reward Configuration Store.

Holds and validates the loyalty program parameters (points per dollar,
signup/referral/review bonuses, tier thresholds, tier benefits and the
redemption catalog).

The store is an explicit object handed to whatever needs it:

    store = RewardConfigStore(db.session, cache=cache)
    config = store.get()
    config = store.update({'tierBenefits': {'gold': {'discount': 12}}})

get() lazily creates the document with defaults. update() merges a partial
patch field by field, validates every field of the result, and either
rejects the whole patch or persists it and refreshes lastUpdated.

Validation is per field (type and min/max). Tier threshold ordering is only
checked when enforce_tier_order is set.
"""
import copy
import logging
import math
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models.reward_config import RewardConfig, SINGLETON_KEY
from ..utils.cache import is_shared_cache
from ..utils.exceptions import PersistenceError, RewardConfigValidationError
from ..utils.reward_defaults import (
    BOOLEAN,
    DEFAULT_REWARD_CONFIG,
    FIELD_RULES,
    RANKED_TIERS,
    READ_ONLY_KEYS,
    REDEMPTION_OPTION_DEFAULTS,
    REDEMPTION_OPTION_REQUIRED,
    REDEMPTION_OPTION_RULES,
    get_config_with_defaults,
    get_default_reward_config,
)

logger = logging.getLogger(__name__)

CACHE_KEY = 'reward_config'


# ==================== Merge & Validation ====================

def merge_patch(current: dict, patch: dict) -> Tuple[dict, Dict[str, str]]:
    """
    Merge a partial patch into a full configuration document.

    Nested objects merge at sub-field level. Lists (redemptionOptions) are
    replaced by the patch's list. Unknown keys and shape mismatches are
    collected as errors rather than raised, so the caller can report them
    together with bound violations.

    Returns:
        Tuple of (merged document, errors by dotted path)
    """
    errors: Dict[str, str] = {}
    patch = {k: v for k, v in patch.items() if k not in READ_ONLY_KEYS}
    merged = _merge_level(DEFAULT_REWARD_CONFIG, current, patch, '', errors)
    return merged, errors


def _merge_level(schema: dict, current: dict, patch: dict, prefix: str, errors: dict) -> dict:
    result = copy.deepcopy(current)
    for key, value in patch.items():
        path = f'{prefix}{key}'
        if key not in schema:
            errors[path] = 'unknown field'
            continue

        shape = schema[key]
        if isinstance(shape, dict):
            if not isinstance(value, dict):
                errors[path] = 'must be an object'
                continue
            result[key] = _merge_level(shape, result.get(key) or {}, value, f'{path}.', errors)
        elif isinstance(shape, list):
            if not isinstance(value, list):
                errors[path] = 'must be a list'
                continue
            result[key] = copy.deepcopy(value)
        else:
            result[key] = value
    return result


def _check_value(path: str, value: Any, rule: tuple, errors: dict) -> None:
    kind, minimum, maximum = rule

    if kind == BOOLEAN:
        if not isinstance(value, bool):
            errors[path] = 'must be a boolean'
        return

    # bool is an int subclass; reject it explicitly for numeric fields
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors[path] = 'must be a number'
        return
    # JSON integers are unbounded; anything past float range is not a usable number
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        errors[path] = 'must be a number'
        return
    if minimum is not None and value < minimum:
        errors[path] = f'must be >= {minimum}'
    elif maximum is not None and value > maximum:
        errors[path] = f'must be <= {maximum}'


def _lookup(document: dict, path: str) -> Tuple[bool, Any]:
    node = document
    for part in path.split('.'):
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node


def normalize_redemption_options(options: list) -> list:
    """Apply row defaults (isActive) without touching anything else."""
    normalized = []
    for option in options:
        if isinstance(option, dict):
            option = {**REDEMPTION_OPTION_DEFAULTS, **option}
        normalized.append(option)
    return normalized


def _validate_redemption_options(options: list, errors: dict) -> None:
    for index, option in enumerate(options):
        prefix = f'redemptionOptions.{index}'
        if not isinstance(option, dict):
            errors[prefix] = 'must be an object'
            continue

        for key in option:
            if key not in REDEMPTION_OPTION_REQUIRED and key not in REDEMPTION_OPTION_DEFAULTS:
                errors[f'{prefix}.{key}'] = 'unknown field'

        for key in REDEMPTION_OPTION_REQUIRED:
            if key not in option or option[key] is None:
                errors[f'{prefix}.{key}'] = 'is required'

        reward = option.get('reward')
        if reward is not None and (not isinstance(reward, str) or not reward.strip()):
            errors[f'{prefix}.reward'] = 'must be a non-empty string'

        for key, rule in REDEMPTION_OPTION_RULES.items():
            if option.get(key) is not None:
                _check_value(f'{prefix}.{key}', option[key], rule, errors)


def validate_document(document: dict, enforce_tier_order: bool = False) -> Dict[str, str]:
    """
    Check every field of a full document against its declared bounds.

    Returns:
        Errors by dotted path (empty when valid)
    """
    errors: Dict[str, str] = {}

    for path, rule in FIELD_RULES.items():
        found, value = _lookup(document, path)
        if not found:
            errors[path] = 'is required'
            continue
        _check_value(path, value, rule, errors)

    _validate_redemption_options(document.get('redemptionOptions') or [], errors)

    if enforce_tier_order:
        thresholds = [document['tierRequirements'].get(tier) for tier in RANKED_TIERS]
        if not any(f'tierRequirements.{tier}' in errors for tier in RANKED_TIERS):
            if not all(low < high for low, high in zip(thresholds, thresholds[1:])):
                errors['tierRequirements'] = 'thresholds must increase: silver < gold < platinum'

    return errors


# ==================== Store ====================

class RewardConfigStore:
    """
    Repository for the single reward configuration document.

    get() and update() are the only operations. Concurrent updates are
    last-write-wins per field; the row is locked for the duration of the
    read-modify-write where the database supports SELECT ... FOR UPDATE.
    """

    def __init__(self, session, cache=None, enforce_tier_order: bool = False,
                 cache_timeout: int = 300):
        self.session = session
        self.cache = cache
        self.enforce_tier_order = enforce_tier_order
        self.cache_timeout = cache_timeout

    # ==================== Reads ====================

    def get(self) -> Dict[str, Any]:
        """Return the current configuration, creating it with defaults if absent."""
        cached = self._cache_get()
        if cached is not None:
            return cached

        try:
            row = self._query().first()
            if row is None:
                row = self._create_default()
            document = row.to_dict()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error('Reward config read failed: %s', e)
            raise PersistenceError('Reward configuration store unavailable', original_error=e)

        self._cache_set(document)
        return copy.deepcopy(document)

    # ==================== Writes ====================

    def update(self, patch: dict) -> Dict[str, Any]:
        """
        Apply a partial patch and return the full updated document.

        Raises:
            RewardConfigValidationError: Any field out of bounds (nothing written)
            PersistenceError: Storage failure (nothing written)
        """
        if not isinstance(patch, dict):
            raise RewardConfigValidationError({'config': 'must be an object'})

        try:
            row = self._query().with_for_update().first()
            if row is None:
                row = RewardConfig(singleton_key=SINGLETON_KEY, document=get_default_reward_config())
                self.session.add(row)

            current = get_config_with_defaults(row.document)
            merged, errors = merge_patch(current, patch)
            merged['redemptionOptions'] = normalize_redemption_options(merged.get('redemptionOptions') or [])
            errors.update(validate_document(merged, self.enforce_tier_order))

            if errors:
                self.session.rollback()
                logger.warning('Rejected reward config update: %s', ', '.join(sorted(errors)))
                raise RewardConfigValidationError(errors)

            row.document = merged
            row.touch()
            self.session.commit()
            document = row.to_dict()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error('Reward config update failed: %s', e)
            raise PersistenceError('Failed to save reward configuration', original_error=e)

        self._cache_delete()
        logger.info('Reward config updated: %s', ', '.join(sorted(patch)) or '(no fields)')
        return document

    # ==================== Internals ====================

    def _query(self):
        return self.session.query(RewardConfig).filter_by(singleton_key=SINGLETON_KEY)

    def _create_default(self) -> RewardConfig:
        row = RewardConfig(singleton_key=SINGLETON_KEY, document=get_default_reward_config())
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError:
            # Another worker created it first
            self.session.rollback()
            return self._query().one()
        logger.info('Created default reward configuration')
        return row

    def _cache_get(self) -> Optional[dict]:
        if self.cache is None:
            return None
        cached = self.cache.get(CACHE_KEY)
        return copy.deepcopy(cached) if cached is not None else None

    def _cache_set(self, document: dict) -> None:
        if self.cache is not None:
            self.cache.set(CACHE_KEY, document, timeout=self.cache_timeout)

    def _cache_delete(self) -> None:
        if self.cache is not None:
            self.cache.delete(CACHE_KEY)


def get_reward_config_store() -> RewardConfigStore:
    """Store registered on the current app by create_app()."""
    from flask import current_app
    return current_app.extensions['reward_config_store']


def build_reward_config_store(app, session, cache=None) -> RewardConfigStore:
    """
    Store wired from the app config.

    The cache is only handed over when every worker process shares it
    (Redis, Memcached). With a per-process backend each worker reads the
    row directly, so a write handled by one worker is seen by all others.
    """
    return RewardConfigStore(
        session,
        cache=cache if is_shared_cache(app) else None,
        enforce_tier_order=app.config['REWARDS_ENFORCE_TIER_ORDER'],
        cache_timeout=app.config['REWARDS_CACHE_TIMEOUT'],
    )
