"""Tests for domain configuration validation and override merging."""

import pytest

from engines.config import SCHEMA_VERSION, merge_overrides, validate_config
from engines.domains import DOMAINS, get_domain_config, list_domains
from engines.errors import ConfigurationError, NumericDegeneracyError

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _config(**overrides):
    cfg = {
        'domain': 'test',
        'indicators': [
            {'name': 'a', 'component': 'c1', 'dimension': 'd1', 'weight': 0.5, 'benchmark': 50},
            {'name': 'b', 'component': 'c1', 'dimension': 'd2', 'weight': 0.5, 'benchmark': 50},
            {'name': 'c', 'component': 'c2', 'dimension': 'd2', 'weight': 1.0, 'benchmark': 50},
        ],
        'weights': {'basis': 'component', 'components': {'c1': 0.6, 'c2': 0.4}},
    }
    cfg.update(overrides)
    return cfg


# ─── validate_config ────────────────────────────────────────────────────────


class TestValidateConfig:
    def test_defaults_filled(self):
        cfg = validate_config(_config())
        assert cfg['schemaVersion'] == SCHEMA_VERSION
        assert cfg['indicators'][0]['mandatory'] is True
        assert cfg['indicators'][0]['range'] == [0.0, 100.0]
        assert cfg['thresholds']['maxRecommendations'] == 15
        assert cfg['weights']['dimensions'] == {'d1': 0.0, 'd2': 0.0}

    def test_input_not_mutated(self):
        raw = _config()
        validate_config(raw)
        assert 'schemaVersion' not in raw

    def test_wrong_schema_version(self):
        with pytest.raises(ConfigurationError):
            validate_config(_config(schemaVersion=2))

    def test_missing_benchmark(self):
        cfg = _config()
        cfg['indicators'][0]['benchmark'] = None
        with pytest.raises(ConfigurationError):
            validate_config(cfg)

    def test_duplicate_indicator(self):
        cfg = _config()
        cfg['indicators'][1]['name'] = 'a'
        with pytest.raises(ConfigurationError):
            validate_config(cfg)

    def test_group_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            validate_config(_config(weights={'basis': 'component', 'components': {'c1': 0.5, 'c2': 0.4}}))

    def test_all_zero_group_weights_degenerate(self):
        with pytest.raises(NumericDegeneracyError):
            validate_config(_config(weights={'basis': 'component', 'components': {'c1': 0.0, 'c2': 0.0}}))

    def test_indicator_weights_within_group(self):
        cfg = _config()
        cfg['indicators'][0]['weight'] = 0.2
        with pytest.raises(ConfigurationError):
            validate_config(cfg)

    def test_unweighted_group(self):
        with pytest.raises(ConfigurationError):
            validate_config(_config(weights={'basis': 'component', 'components': {'c1': 1.0}}))

    def test_unknown_scenario(self):
        with pytest.raises(ConfigurationError):
            validate_config(_config(scenarios=['moonshot']))

    def test_custom_scenario_definition_accepted(self):
        defs = {'moonshot': {'initialChangeRate': 0.2, 'acceleration': 0.0, 'maxChangeRate': 0.5}}
        cfg = validate_config(_config(scenarios=['moonshot'], scenarioDefinitions=defs))
        assert cfg['scenarios'] == ['moonshot']

    def test_threshold_ordering(self):
        with pytest.raises(ConfigurationError):
            validate_config(_config(thresholds={'critical': 80}))

    def test_floor_above_ceiling(self):
        alloc = {'mode': 'closed_form', 'constraints': {'x': {'floor': 0.5, 'ceiling': 0.3}}}
        with pytest.raises(ConfigurationError):
            validate_config(_config(allocation=alloc))

    def test_floors_above_whole(self):
        alloc = {'constraints': {'x': {'floor': 0.6}, 'y': {'floor': 0.6}}}
        with pytest.raises(ConfigurationError):
            validate_config(_config(allocation=alloc))

    def test_history_window_range(self):
        with pytest.raises(ConfigurationError):
            validate_config(_config(historyWindow=80))


# ─── merge_overrides ────────────────────────────────────────────────────────


class TestMergeOverrides:
    def test_weight_override_merges(self):
        cfg = merge_overrides(_config(), {'weights': {'components': {'c1': 0.5, 'c2': 0.5}}})
        assert validate_config(cfg)['weights']['components'] == {'c1': 0.5, 'c2': 0.5}

    def test_indicator_field_override(self):
        cfg = merge_overrides(_config(), {'indicators': {'a': {'benchmark': 75}}})
        assert cfg['indicators'][0]['benchmark'] == 75

    def test_unknown_indicator_override(self):
        with pytest.raises(ConfigurationError):
            merge_overrides(_config(), {'indicators': {'zzz': {'weight': 1}}})

    def test_base_untouched(self):
        base = _config()
        merge_overrides(base, {'thresholds': {'medium': 80}, 'horizon': 5})
        assert 'thresholds' not in base and 'horizon' not in base


# ─── Domain presets ─────────────────────────────────────────────────────────


class TestDomainPresets:
    @pytest.mark.parametrize('domain', list(DOMAINS))
    def test_every_preset_validates(self, domain):
        cfg = validate_config(get_domain_config(domain))
        assert cfg['domain'] == domain

    def test_seven_domains(self):
        assert {d['domain'] for d in list_domains()} == {'climate', 'resilience', 'energy_flow', 'carbon',
                                       'livelihood', 'cultural', 'equity'}

    def test_unknown_domain(self):
        with pytest.raises(ConfigurationError):
            get_domain_config('astrology')

    def test_presets_declare_only_basis_weights(self):
        for cfg in DOMAINS.values():
            other = 'dimensions' if cfg['weights']['basis'] == 'component' else 'components'
            assert not any((cfg['weights'].get(other) or {}).values()), cfg['domain']


class TestImpliedWeights:
    def test_non_basis_weights_dropped_with_warning(self, caplog):
        raw = _config(weights={'basis': 'component', 'components': {'c1': 0.6, 'c2': 0.4},
                               'dimensions': {'d1': 0.7, 'd2': 0.3}})
        with caplog.at_level('WARNING'):
            cfg = validate_config(raw)
        assert cfg['weights']['dimensions'] == {'d1': 0.0, 'd2': 0.0}
        assert 'dimension weights ignored' in caplog.text

    def test_zero_non_basis_weights_are_quiet(self, caplog):
        with caplog.at_level('WARNING'):
            validate_config(_config(weights={'basis': 'component', 'components': {'c1': 0.6, 'c2': 0.4},
                                             'dimensions': {'d1': 0.0}}))
        assert 'ignored' not in caplog.text
