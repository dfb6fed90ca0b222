"""
Tests for RewardConfigStore.

Tests cover:
- Lazy creation with defaults
- Partial updates merged field by field
- Bound validation and whole-patch rejection
- Optional tier ordering check
- Redemption catalog updates
- Cache use and persistence failures
"""
import json
import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError

from travelbook.extensions import db
from travelbook.models import RewardConfig
from travelbook.services.reward_config_service import (
    CACHE_KEY,
    RewardConfigStore,
    build_reward_config_store,
    merge_patch,
    validate_document,
)
from travelbook.utils.exceptions import PersistenceError, RewardConfigValidationError
from travelbook.utils.reward_defaults import DEFAULT_REWARD_CONFIG, get_default_reward_config


def _without_timestamp(config):
    return {k: v for k, v in config.items() if k != 'lastUpdated'}


def _stored_row_snapshot():
    row = RewardConfig.query.one()
    return json.dumps(row.document, sort_keys=True), row.last_updated


class TestGet:
    """Tests for get() on an empty and a populated store."""

    def test_get_empty_store_returns_defaults(self, store):
        """Test every field equals its documented default."""
        config = store.get()

        assert _without_timestamp(config) == DEFAULT_REWARD_CONFIG
        assert config['pointsPerDollar'] == 10
        assert config['signupBonus'] == 100
        assert config['referralBonus'] == {'user': 250, 'referrer': 500}
        assert config['reviewBonus'] == 50
        assert config['tierRequirements'] == {'silver': 500, 'gold': 1500, 'platinum': 3000}
        assert config['tierBenefits']['silver'] == {'discount': 5, 'priority': False}
        assert config['tierBenefits']['gold'] == {'discount': 10, 'priority': True, 'earlyAccess': True}
        assert config['tierBenefits']['platinum'] == {
            'discount': 15, 'priority': True, 'earlyAccess': True, 'dedicatedSupport': True
        }
        assert config['redemptionOptions'] == []
        assert config['lastUpdated'].endswith('Z')

    def test_get_creates_single_row(self, app, store):
        """Test repeated get() never creates a second document."""
        store.get()
        store.get()

        assert RewardConfig.query.count() == 1

    def test_get_fills_missing_keys_from_defaults(self, app, store):
        """Test a stored document missing newer keys is completed on read."""
        row = RewardConfig(document={'pointsPerDollar': 7})
        db.session.add(row)
        db.session.commit()

        config = store.get()

        assert config['pointsPerDollar'] == 7
        assert config['tierRequirements'] == DEFAULT_REWARD_CONFIG['tierRequirements']

    def test_get_returns_copy(self, store):
        """Test mutating the returned dict does not leak into the store."""
        config = store.get()
        config['tierRequirements']['gold'] = 1

        assert store.get()['tierRequirements']['gold'] == 1500


class TestUpdate:
    """Tests for successful partial updates."""

    def test_update_changes_only_patched_leaves(self, store):
        """Test only the patched fields change and lastUpdated advances."""
        before = store.get()

        after = store.update({
            'pointsPerDollar': 12,
            'tierBenefits': {'gold': {'discount': 12}},
        })

        expected = _without_timestamp(before)
        expected['pointsPerDollar'] = 12
        expected['tierBenefits']['gold']['discount'] = 12
        assert _without_timestamp(after) == expected
        assert after['lastUpdated'] > before['lastUpdated']

    def test_update_nested_merge_keeps_siblings(self, store):
        """Test nested objects merge at sub-field level."""
        after = store.update({'referralBonus': {'referrer': 750}})

        assert after['referralBonus'] == {'user': 250, 'referrer': 750}

    def test_update_persists(self, app, store):
        """Test the change survives a fresh read from the database."""
        store.update({'signupBonus': 150})
        db.session.expire_all()

        assert RewardConfig.query.one().document['signupBonus'] == 150
        assert store.get()['signupBonus'] == 150

    def test_update_on_empty_store_creates_document(self, app, store):
        """Test update() works before any get()."""
        after = store.update({'reviewBonus': 75})

        assert after['reviewBonus'] == 75
        assert after['pointsPerDollar'] == 10
        assert RewardConfig.query.count() == 1

    def test_update_accepts_float_values(self, store):
        """Test fractional numbers are valid."""
        after = store.update({'pointsPerDollar': 2.5, 'tierBenefits': {'silver': {'discount': 7.5}}})

        assert after['pointsPerDollar'] == 2.5
        assert after['tierBenefits']['silver']['discount'] == 7.5

    def test_update_boundary_values(self, store):
        """Test 0 and 100 are both valid discounts."""
        after = store.update({
            'tierBenefits': {'silver': {'discount': 0}, 'platinum': {'discount': 100}},
            'signupBonus': 0,
        })

        assert after['tierBenefits']['silver']['discount'] == 0
        assert after['tierBenefits']['platinum']['discount'] == 100
        assert after['signupBonus'] == 0

    def test_update_ignores_last_updated_in_patch(self, store):
        """Test a client-sent lastUpdated is ignored and replaced by now."""
        before = store.get()

        after = store.update({'lastUpdated': '1999-01-01T00:00:00Z', 'reviewBonus': 60})

        assert after['lastUpdated'] > before['lastUpdated']
        assert after['reviewBonus'] == 60

    def test_update_full_document_round_trip(self, store):
        """Test sending back a full GET payload is accepted unchanged."""
        before = store.get()

        after = store.update(before)

        assert _without_timestamp(after) == _without_timestamp(before)

    def test_permissive_tier_order_by_default(self, store):
        """Test silver >= gold is accepted when ordering is not enforced."""
        after = store.update({'tierRequirements': {'silver': 2000, 'gold': 1000}})

        assert after['tierRequirements'] == {'silver': 2000, 'gold': 1000, 'platinum': 3000}


class TestUpdateValidation:
    """Tests for rejected updates."""

    def test_out_of_bound_discount_rejected(self, store):
        """Test a discount above 100 rejects the patch."""
        store.get()

        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({'tierBenefits': {'gold': {'discount': 150}}})

        assert 'tierBenefits.gold.discount' in exc_info.value.errors

    def test_rejected_patch_leaves_store_unchanged(self, app, store):
        """Test no partial write happens when one field is invalid."""
        store.update({'signupBonus': 120})
        before_doc, before_ts = _stored_row_snapshot()

        with pytest.raises(RewardConfigValidationError):
            store.update({'signupBonus': 999, 'tierBenefits': {'gold': {'discount': 150}}})

        db.session.expire_all()
        after_doc, after_ts = _stored_row_snapshot()
        assert after_doc == before_doc
        assert after_ts == before_ts
        assert store.get()['signupBonus'] == 120

    def test_errors_are_aggregated(self, store):
        """Test every offending field is reported, not just the first."""
        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({
                'pointsPerDollar': -1,
                'referralBonus': {'user': -5},
                'tierBenefits': {'silver': {'discount': 101}},
            })

        errors = exc_info.value.errors
        assert set(errors) == {
            'pointsPerDollar',
            'referralBonus.user',
            'tierBenefits.silver.discount',
        }
        assert 'pointsPerDollar' in exc_info.value.message
        assert exc_info.value.code == 'VALIDATION_ERROR'

    def test_unknown_field_rejected(self, store):
        """Test keys outside the schema are rejected."""
        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({'tierBenefits': {'diamond': {'discount': 20}}, 'bogus': 1})

        assert set(exc_info.value.errors) == {'tierBenefits.diamond', 'bogus'}

    def test_wrong_types_rejected(self, store):
        """Test booleans, strings and objects are type-checked."""
        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({
                'pointsPerDollar': True,
                'signupBonus': '100',
                'tierBenefits': {'gold': {'priority': 'yes'}},
                'tierRequirements': 5,
            })

        errors = exc_info.value.errors
        assert errors['pointsPerDollar'] == 'must be a number'
        assert errors['signupBonus'] == 'must be a number'
        assert errors['tierBenefits.gold.priority'] == 'must be a boolean'
        assert errors['tierRequirements'] == 'must be an object'

    def test_integer_beyond_float_range_rejected(self, store):
        """Test a huge JSON integer is a validation error, not a crash."""
        store.get()

        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({
                'signupBonus': 10 ** 400,
                'redemptionOptions': [{'points': 10 ** 400, 'reward': 'Suite', 'value': 1}],
            })

        assert exc_info.value.errors == {
            'signupBonus': 'must be a number',
            'redemptionOptions.0.points': 'must be a number',
        }
        assert store.get()['signupBonus'] == 100

    def test_non_dict_patch_rejected(self, store):
        """Test a list body is rejected outright."""
        with pytest.raises(RewardConfigValidationError):
            store.update(['pointsPerDollar', 5])

    def test_tier_order_enforced_when_enabled(self, app):
        """Test the ordering flag rejects silver >= gold."""
        store = RewardConfigStore(db.session, enforce_tier_order=True)

        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({'tierRequirements': {'silver': 1500, 'gold': 1500}})

        assert 'tierRequirements' in exc_info.value.errors

    def test_tier_order_flag_allows_increasing_thresholds(self, app):
        """Test the ordering flag accepts strictly increasing thresholds."""
        store = RewardConfigStore(db.session, enforce_tier_order=True)

        after = store.update({'tierRequirements': {'silver': 400, 'gold': 1000, 'platinum': 2000}})

        assert after['tierRequirements'] == {'silver': 400, 'gold': 1000, 'platinum': 2000}


class TestRedemptionOptions:
    """Tests for the redemption catalog."""

    def test_add_option_appends_one(self, seeded_store):
        """Test adding one entry keeps prior entries in order and content."""
        before = seeded_store.get()['redemptionOptions']
        new_option = {'points': 5000, 'reward': 'Free night', 'value': 120}

        after = seeded_store.update({'redemptionOptions': before + [new_option]})['redemptionOptions']

        assert len(after) == len(before) + 1
        assert after[:len(before)] == before
        assert after[-1] == {**new_option, 'isActive': True}

    def test_is_active_defaults_true(self, store):
        """Test isActive is filled in when omitted."""
        after = store.update({'redemptionOptions': [{'points': 100, 'reward': 'Late checkout', 'value': 10}]})

        assert after['redemptionOptions'][0]['isActive'] is True

    def test_missing_required_fields_rejected(self, store):
        """Test points, reward and value are required per row."""
        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({'redemptionOptions': [{'isActive': False}]})

        assert set(exc_info.value.errors) == {
            'redemptionOptions.0.points',
            'redemptionOptions.0.reward',
            'redemptionOptions.0.value',
        }

    def test_negative_row_values_rejected(self, store):
        """Test row numbers are bounded like top-level fields."""
        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({'redemptionOptions': [
                {'points': 100, 'reward': 'Spa credit', 'value': 10},
                {'points': -1, 'reward': ' ', 'value': -3},
            ]})

        assert set(exc_info.value.errors) == {
            'redemptionOptions.1.points',
            'redemptionOptions.1.reward',
            'redemptionOptions.1.value',
        }

    def test_options_must_be_list(self, store):
        """Test a non-list catalog is rejected."""
        with pytest.raises(RewardConfigValidationError) as exc_info:
            store.update({'redemptionOptions': {'points': 1}})

        assert exc_info.value.errors == {'redemptionOptions': 'must be a list'}


class TestMergeAndValidateHelpers:
    """Tests for the pure merge/validate helpers."""

    def test_merge_does_not_mutate_inputs(self):
        """Test merge_patch leaves both arguments untouched."""
        current = get_default_reward_config()
        patch = {'tierBenefits': {'gold': {'discount': 20}}}

        merged, errors = merge_patch(current, patch)

        assert errors == {}
        assert merged['tierBenefits']['gold']['discount'] == 20
        assert current['tierBenefits']['gold']['discount'] == 10
        assert patch == {'tierBenefits': {'gold': {'discount': 20}}}

    def test_defaults_are_valid(self):
        """Test the default document passes validation with ordering on."""
        assert validate_document(get_default_reward_config(), enforce_tier_order=True) == {}

    def test_missing_field_reported(self):
        """Test a document missing a required leaf is invalid."""
        document = get_default_reward_config()
        del document['tierBenefits']['platinum']['dedicatedSupport']

        assert validate_document(document) == {
            'tierBenefits.platinum.dedicatedSupport': 'is required'
        }

    def test_non_finite_numbers_rejected(self):
        """Test NaN and infinity are not valid numbers."""
        document = get_default_reward_config()
        document['pointsPerDollar'] = float('nan')
        document['reviewBonus'] = float('inf')

        errors = validate_document(document)

        assert errors == {'pointsPerDollar': 'must be a number', 'reviewBonus': 'must be a number'}


class TestCachingAndFailures:
    """Tests for cache use and storage failures."""

    def test_get_served_from_cache(self, app):
        """Test a cached document short-circuits the database."""
        cached = {**get_default_reward_config(), 'lastUpdated': '2026-01-01T00:00:00Z'}
        cache = MagicMock()
        cache.get.return_value = cached
        session = MagicMock()
        store = RewardConfigStore(session, cache=cache)

        assert store.get() == cached
        session.query.assert_not_called()

    def test_get_populates_cache(self, app):
        """Test a database read is written to the cache."""
        cache = MagicMock()
        cache.get.return_value = None
        store = RewardConfigStore(db.session, cache=cache, cache_timeout=60)

        config = store.get()

        cache.set.assert_called_once_with(CACHE_KEY, config, timeout=60)

    def test_update_invalidates_cache(self, app):
        """Test a successful update drops the cached document."""
        cache = MagicMock()
        cache.get.return_value = None
        store = RewardConfigStore(db.session, cache=cache)

        store.update({'reviewBonus': 80})

        cache.delete.assert_called_once_with(CACHE_KEY)

    def test_rejected_update_keeps_cache(self, app):
        """Test a rejected update does not touch the cache."""
        cache = MagicMock()
        cache.get.return_value = None
        store = RewardConfigStore(db.session, cache=cache)

        with pytest.raises(RewardConfigValidationError):
            store.update({'reviewBonus': -1})

        cache.delete.assert_not_called()

    def test_get_storage_failure_raises_persistence_error(self):
        """Test database errors surface as infrastructure errors."""
        session = MagicMock()
        session.query.side_effect = OperationalError('SELECT', {}, Exception('connection lost'))
        store = RewardConfigStore(session)

        with pytest.raises(PersistenceError) as exc_info:
            store.get()

        assert exc_info.value.code == 'DATABASE_ERROR'
        assert isinstance(exc_info.value.original_error, OperationalError)
        session.rollback.assert_called_once()

    def test_update_storage_failure_raises_persistence_error(self):
        """Test a failing commit is not reported as a validation error."""
        row = RewardConfig(document=get_default_reward_config())
        session = MagicMock()
        session.query.return_value.filter_by.return_value.with_for_update.return_value.first.return_value = row
        session.commit.side_effect = OperationalError('UPDATE', {}, Exception('timeout'))
        store = RewardConfigStore(session)

        with pytest.raises(PersistenceError):
            store.update({'reviewBonus': 80})

        session.rollback.assert_called_once()


class _WorkerCache:
    """Dict-backed stand-in for one worker's in-memory cache."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, timeout=None):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class TestMultipleWorkers:
    """Tests for stores in separate workers sharing one database."""

    def test_per_process_cache_is_not_used(self, app):
        """Test a worker-local backend leaves the store uncached."""
        app.config['CACHE_TYPE'] = 'SimpleCache'

        store = build_reward_config_store(app, db.session, _WorkerCache())

        assert store.cache is None

    def test_update_in_one_worker_seen_by_another(self, app):
        """Test a write in worker B is visible on worker A's next read."""
        app.config['CACHE_TYPE'] = 'SimpleCache'
        worker_a = build_reward_config_store(app, db.session, _WorkerCache())
        worker_b = build_reward_config_store(app, db.session, _WorkerCache())

        assert worker_a.get()['signupBonus'] == 100
        worker_b.update({'signupBonus': 175})
        db.session.expire_all()

        assert worker_a.get()['signupBonus'] == 175

    def test_shared_cache_invalidated_for_all_workers(self, app):
        """Test a shared backend is used and cleared by any worker's write."""
        app.config['CACHE_TYPE'] = 'RedisCache'
        shared = _WorkerCache()
        worker_a = build_reward_config_store(app, db.session, shared)
        worker_b = build_reward_config_store(app, db.session, shared)

        assert worker_a.cache is shared
        worker_a.get()
        assert CACHE_KEY in shared.data

        worker_b.update({'signupBonus': 175})

        assert CACHE_KEY not in shared.data
        assert worker_a.get()['signupBonus'] == 175
