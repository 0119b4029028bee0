"""Tests for stored unit conversions."""

import pytest

from recipe_costing.services import business_service, unit_conversion_service
from recipe_costing.services.exceptions import (
    BusinessNotFound,
    InventoryItemNotFound,
    UnitConversionNotFound,
    ValidationError,
)


class TestCreateConversion:
    def test_create_normalizes_units(self, business):
        conversion = unit_conversion_service.create_conversion(
            business.id, {"from_unit": " KG ", "to_unit": "Grams", "factor": 1000}
        )

        assert conversion.from_unit == "kg"
        assert conversion.to_unit == "g"
        assert conversion.factor == 1000.0
        assert conversion.item_id is None

    def test_same_unit_rejected(self, business):
        with pytest.raises(ValidationError, match="differ"):
            unit_conversion_service.create_conversion(
                business.id, {"from_unit": "kg", "to_unit": "KG", "factor": 1}
            )

    def test_non_positive_factor_rejected(self, business):
        with pytest.raises(ValidationError):
            unit_conversion_service.create_conversion(
                business.id, {"from_unit": "kg", "to_unit": "g", "factor": 0}
            )

    def test_missing_business(self, test_db):
        with pytest.raises(BusinessNotFound):
            unit_conversion_service.create_conversion(
                9, {"from_unit": "kg", "to_unit": "g", "factor": 1000}
            )

    def test_item_from_other_business_rejected(self, business, flour):
        other = business_service.create_business("Other Kitchen")

        with pytest.raises(InventoryItemNotFound):
            unit_conversion_service.create_conversion(
                other.id, {"from_unit": "cup", "to_unit": "kg", "factor": 0.12, "item_id": flour.id}
            )


class TestConversionFactor:
    def test_direct_and_inverse(self, business):
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "kg", "to_unit": "g", "factor": 1000}
        )

        assert unit_conversion_service.get_conversion_factor(business.id, "kg", "g") == 1000
        assert unit_conversion_service.get_conversion_factor(
            business.id, "g", "kg"
        ) == pytest.approx(0.001)

    def test_same_unit_is_identity(self, business):
        assert unit_conversion_service.get_conversion_factor(business.id, "kg", "kg") == 1.0

    def test_missing_is_none(self, business):
        assert unit_conversion_service.get_conversion_factor(business.id, "cup", "kg") is None

    def test_item_specific_overrides_business_wide(self, business, flour):
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "cup", "to_unit": "kg", "factor": 0.25}
        )
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "cup", "to_unit": "kg", "factor": 0.12, "item_id": flour.id}
        )

        assert unit_conversion_service.get_conversion_factor(
            business.id, "cup", "kg", item_id=flour.id
        ) == pytest.approx(0.12)
        assert unit_conversion_service.get_conversion_factor(
            business.id, "cup", "kg"
        ) == pytest.approx(0.25)

    def test_other_business_conversions_ignored(self, business):
        other = business_service.create_business("Other Kitchen")
        unit_conversion_service.create_conversion(
            other.id, {"from_unit": "kg", "to_unit": "g", "factor": 1000}
        )

        assert unit_conversion_service.get_conversion_factor(business.id, "kg", "g") is None


class TestSeedStandardConversions:
    def test_seed_is_idempotent(self, business):
        assert unit_conversion_service.seed_standard_conversions(business.id) == 9
        assert unit_conversion_service.seed_standard_conversions(business.id) == 0

        conversions = unit_conversion_service.get_conversions(business.id)
        assert len(conversions) == 9
        assert all(c.notes == "standard" for c in conversions)

    def test_existing_pair_in_reverse_not_duplicated(self, business):
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "g", "to_unit": "kg", "factor": 0.001}
        )

        assert unit_conversion_service.seed_standard_conversions(business.id) == 8

    def test_item_specific_rows_do_not_block_seeding(self, business, flour):
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "kg", "to_unit": "g", "factor": 1000, "item_id": flour.id}
        )

        assert unit_conversion_service.seed_standard_conversions(business.id) == 9

    def test_missing_business(self, test_db):
        with pytest.raises(BusinessNotFound):
            unit_conversion_service.seed_standard_conversions(5)


class TestQueryAndDelete:
    def test_filter_by_item(self, business, flour, butter):
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "cup", "to_unit": "kg", "factor": 0.12, "item_id": flour.id}
        )
        unit_conversion_service.create_conversion(
            business.id, {"from_unit": "cup", "to_unit": "kg", "factor": 0.23, "item_id": butter.id}
        )

        scoped = unit_conversion_service.get_conversions(business.id, item_id=butter.id)
        assert [c.factor for c in scoped] == [0.23]

    def test_delete(self, business):
        conversion = unit_conversion_service.create_conversion(
            business.id, {"from_unit": "l", "to_unit": "ml", "factor": 1000}
        )

        assert unit_conversion_service.delete_conversion(conversion.id)
        assert unit_conversion_service.get_conversions(business.id) == []

    def test_delete_missing(self, test_db):
        with pytest.raises(UnitConversionNotFound):
            unit_conversion_service.delete_conversion(404)
