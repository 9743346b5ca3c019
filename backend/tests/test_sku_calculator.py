"""SKU derived fields and product-line enrichment."""

from datetime import date
from types import SimpleNamespace

import pytest

from app.services.sku_calculator import (
    apply_derived_fields,
    calc_cases_per_layer,
    cubic_per_hu,
    enrich_inbound_line,
    enrich_outbound_line,
    sqm_per_su,
)


def _sku(**kw):
    base = dict(
        description="Carton 500ml x 12",
        hu_per_su=40,
        length_per_hu_mm=400,
        width_per_hu_mm=300,
        height_per_hu_mm=250,
        weight_per_hu_kg=7.5,
        cases_per_layer=None,
        layers_per_pallet=None,
        cases_per_pallet=None,
        cases_per_layer_calculated=True,
        layers_per_pallet_calculated=True,
        cases_per_pallet_calculated=True,
        is_expiry=False,
        is_attribute1=False,
        is_attribute2=False,
        expiry_date=None,
        attribute1=None,
        attribute2=None,
    )
    base.update(kw)
    return SimpleNamespace(**base)


PALLET = SimpleNamespace(length_per_su_mm=1200, width_per_su_mm=1000)


@pytest.mark.unit
class TestCalculations:

    def test_cubic_and_footprint(self):
        assert cubic_per_hu(400, 300, 250) == pytest.approx(0.03)
        assert sqm_per_su(1200, 1000) == pytest.approx(1.2)

    def test_missing_dimension_gives_none(self):
        assert cubic_per_hu(400, None, 250) is None
        assert sqm_per_su(0, 1000) is None
        assert calc_cases_per_layer(1200, 1000, None, 300) is None

    def test_cases_per_layer_floors_each_axis(self):
        # 1200/400 = 3, 1000/300 = 3.33 -> 3
        assert calc_cases_per_layer(1200, 1000, 400, 300) == 9


@pytest.mark.unit
class TestDerivedFields:

    def test_derives_full_stack(self):
        sku = _sku()
        apply_derived_fields(sku, PALLET)
        assert sku.cases_per_layer == 9
        assert sku.layers_per_pallet == 4
        assert sku.cases_per_pallet == 36
        assert sku.cases_per_pallet_calculated is True

    def test_override_survives_and_feeds_downstream(self):
        sku = _sku(cases_per_layer=10)
        apply_derived_fields(sku, PALLET, overridden={"cases_per_layer"})
        assert sku.cases_per_layer == 10
        assert sku.cases_per_layer_calculated is False
        assert sku.layers_per_pallet == 4
        assert sku.cases_per_pallet == 40

        # A later save with new dimensions keeps the manual value
        sku.length_per_hu_mm = 200
        apply_derived_fields(sku, PALLET)
        assert sku.cases_per_layer == 10

    def test_non_positive_result_leaves_field_empty(self):
        sku = _sku(length_per_hu_mm=1500)
        apply_derived_fields(sku, PALLET)
        assert sku.cases_per_layer is None
        assert sku.layers_per_pallet is None

    def test_no_storage_unit_keeps_cases_per_layer(self):
        sku = _sku(cases_per_layer=8, cases_per_layer_calculated=False)
        apply_derived_fields(sku, None)
        assert sku.cases_per_layer == 8
        assert sku.layers_per_pallet == 5


@pytest.mark.unit
class TestEnrichment:

    def test_inbound_line(self):
        line = SimpleNamespace(
            expected_qty=80, expiry_date=None, attribute1=None, attribute2=None,
        )
        enrich_inbound_line(line, _sku(), PALLET)
        assert line.lpn_qty == 40
        assert line.pallet_spaces == 2
        assert line.sqm_per_su == pytest.approx(1.2)
        assert line.expected_cubic_per_hu == pytest.approx(0.03)
        assert line.weight_per_hu == 7.5

    def test_tracked_attributes_fill_only_blanks(self):
        sku = _sku(
            is_expiry=True, expiry_date=date(2027, 3, 1),
            is_attribute1=True, attribute1="Chilled",
            attribute2="ignored",
        )
        line = SimpleNamespace(
            expected_qty=None, expiry_date=None, attribute1="Frozen", attribute2=None,
        )
        enrich_inbound_line(line, sku)
        assert line.expiry_date == date(2027, 3, 1)
        assert line.attribute1 == "Frozen"
        assert line.attribute2 is None
        assert line.pallet_spaces is None

    def test_outbound_line(self):
        line = SimpleNamespace(
            allocated_qty=20, expiry=None, attribute1=None, attribute2=None,
        )
        enrich_outbound_line(line, _sku())
        assert line.plt_qty == 0.5
        assert line.required_cubic_per_hu == pytest.approx(0.03)
        assert line.sku_description == "Carton 500ml x 12"
