import pytest

from energy_budget.aggregation import Aggregator, combine_month, weighted_pct
from energy_budget.forecast import MonthlyForecastRecord


@pytest.fixture
def aggregator(store, overlay):
    return Aggregator(store, overlay)


def test_energy_price_pct_is_weighted_by_consumption(aggregator, service, row):
    service.add('P1', 2025, row(1, 20.0, 100.0, 10.0, ep=10.0))
    service.add('P2', 2025, row(1, 60.0, 300.0, 30.0, ep=0.0))
    january = aggregator.build_series(['P1', 'P2'], 2025)[0]

    assert january.energy_price_pct == pytest.approx(2.5)
    assert january.base_consumption == pytest.approx(400.0)
    assert january.base_energy_cost == pytest.approx(80.0)
    assert january.base_ancillary_cost == pytest.approx(40.0)
    assert january.point_id == 'ALL'
    assert january.editable


def test_ancillary_pct_is_weighted_by_ancillary_cost(aggregator, service, row):
    service.add('P1', 2025, row(2, 10.0, 900.0, 10.0, cp=10.0, ap=40.0))
    service.add('P2', 2025, row(2, 10.0, 100.0, 30.0, cp=-10.0, ap=0.0))
    february = aggregator.build_series(['P1', 'P2'], 2025)[1]

    assert february.consumption_pct == pytest.approx((900 * 10 - 100 * 10) / 1000)
    assert february.ancillary_pct == pytest.approx(10.0)


def test_non_editable_member_does_not_contribute(aggregator, service, row):
    service.add('P1', 2025, row(6, 200.0, 1000.0, 50.0, ep=10.0, cp=5.0, ap=-5.0))
    service.add('P2', 2025, row(6, 0.0, 0.0, 0.0, ep=30.0, cp=30.0, ap=30.0))
    june = aggregator.build_series(['P1', 'P2'], 2025)[5]

    assert june.base_energy_cost == pytest.approx(200.0)
    assert june.base_consumption == pytest.approx(1000.0)
    assert june.base_ancillary_cost == pytest.approx(50.0)
    assert june.energy_price_pct == pytest.approx(10.0)
    assert june.consumption_pct == pytest.approx(5.0)
    assert june.ancillary_pct == pytest.approx(-5.0)


def test_only_projected_members_sum_projections(aggregator, service, row):
    service.add('P1', 2024, row(3, 100.0, 1000.0, 10.0, ep=10.0))
    service.add('P2', 2024, row(3, 50.0, 500.0, 20.0, cp=20.0))
    march = aggregator.build_series(['P1', 'P2'], 2025)[2]

    assert march.base_consumption == pytest.approx(1000.0 + 600.0)
    assert march.base_energy_cost == pytest.approx(110.0 + 60.0)
    assert march.base_ancillary_cost == pytest.approx(30.0)
    assert (march.energy_price_pct, march.consumption_pct, march.ancillary_pct) == (0, 0, 0)
    assert march.editable


def test_mixed_members_weight_projected_ones_with_zero_pct(aggregator, service, row):
    service.add('P1', 2025, row(4, 10.0, 100.0, 1.0, ep=20.0))
    service.add('P2', 2024, row(4, 10.0, 100.0, 1.0, ep=50.0))
    april = aggregator.build_series(['P1', 'P2'], 2025)[3]

    assert april.base_consumption == pytest.approx(200.0)
    assert april.energy_price_pct == pytest.approx(10.0)


def test_aggregate_overlay_overrides_without_touching_members(aggregator, service, overlay, row):
    service.add('P1', 2025, row(1, 20.0, 100.0, 10.0, ep=10.0))
    overlay.put('ALL', 2025, 1, {'energy_price_pct': 40.0}, stamp=1)

    january = aggregator.build_series(['P1'], 2025)[0]
    assert january.energy_price_pct == 40.0
    assert january.base_consumption == 100.0
    assert overlay.get('P1', 2025, 1) is None


def test_month_without_contributors_is_empty(aggregator, service, row):
    service.add('P1', 2025, row(1, 20.0, 100.0, 10.0))
    december = aggregator.build_series(['P1'], 2025)[11]
    assert december.source == 'empty'
    assert not december.editable


def test_month_without_contributors_uses_aggregate_history(aggregator, overlay):
    overlay.put('ALL', 2024, 5, {'base_energy_cost': 10.0, 'base_consumption': 100.0, 'base_ancillary_cost': 4.0}, stamp=1)
    may = aggregator.build_series(['P1'], 2025)[4]

    assert may.source == 'projected'
    assert may.base_consumption == pytest.approx(100.0)
    assert may.editable


def test_failing_member_is_skipped(aggregator, service, row):
    service.add('P1', 2025, row(1, 20.0, 100.0, 10.0))
    service.failing.add('P2')
    series = aggregator.build_series(['P1', 'P2'], 2025)
    assert series[0].base_consumption == 100.0


def test_weighted_pct_with_zero_weights():
    assert weighted_pct([(10.0, 0.0), (20.0, 0.0)]) == 0.0
    assert weighted_pct([]) == 0.0


def test_combine_month_without_editable_records():
    blank = MonthlyForecastRecord('P1', 2025, 1, energy_price_pct=10.0)
    assert combine_month([blank], 2025, 1) is None


def test_month_without_contributors_uses_aggregate_overlay_bases(aggregator, overlay):
    overlay.put('ALL', 2025, 8, {'base_energy_cost': 30.0, 'base_consumption': 250.0, 'base_ancillary_cost': 12.0}, stamp=1)
    august = aggregator.build_series(['P1'], 2025)[7]

    assert august.source == 'overlay'
    assert august.editable
    assert august.base_energy_cost == 30.0
    assert august.base_consumption == 250.0
    assert august.base_ancillary_cost == 12.0


def test_aggregate_edit_wins_over_projection_reset(aggregator, service, overlay, row):
    service.add('P1', 2024, row(3, 100.0, 1000.0, 10.0, ep=10.0))
    service.add('P2', 2024, row(3, 50.0, 500.0, 20.0))
    overlay.put('ALL', 2025, 3, {'consumption_pct': -15.0}, stamp=1)

    march = aggregator.build_series(['P1', 'P2'], 2025)[2]
    assert march.consumption_pct == -15.0
    assert march.energy_price_pct == 0.0
    assert march.base_consumption == pytest.approx(1500.0)
