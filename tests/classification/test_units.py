"""Tests for unit normalization."""
import pytest

from app.classification.models import UNCATEGORIZED
from app.classification.units import UNIT_WEIGHTS, UnitNormalizer


@pytest.fixture
def normalizer():
    return UnitNormalizer()


class TestMassAndVolume:
    @pytest.mark.parametrize("unit", ["g", "ml", "G", " ml "])
    def test_thousand_small_units_is_one_kg(self, normalizer, unit):
        assert normalizer.normalize_to_kg(1000, unit, "Carnes") == 1.0

    @pytest.mark.parametrize("quantity", [0.25, 1, 3.5, 12])
    def test_kg_is_identity(self, normalizer, quantity):
        assert normalizer.normalize_to_kg(quantity, "kg", "Frutas y Verduras") == quantity

    def test_litres_assume_unit_density(self, normalizer):
        assert normalizer.normalize_to_kg(2, "l", "Bebidas") == 2

    def test_grams_conversion(self, normalizer):
        assert normalizer.normalize_to_kg(850, "g", "Quesos") == pytest.approx(0.85)


class TestCountEstimation:
    def test_unit_uses_category_weight(self, normalizer):
        assert normalizer.normalize_to_kg(2, "un", "Leches") == pytest.approx(2 * UNIT_WEIGHTS["Leches"])

    def test_units_plural(self, normalizer):
        assert normalizer.normalize_to_kg(3, "units", "Chocolates") == pytest.approx(3 * UNIT_WEIGHTS["Chocolates"])

    def test_unknown_category_uses_fallback_weight(self, normalizer):
        expected = 4 * UNIT_WEIGHTS[UNCATEGORIZED]
        assert normalizer.normalize_to_kg(4, "un", "Not a category") == pytest.approx(expected)

    def test_unknown_unit_treated_as_count(self, normalizer):
        assert normalizer.normalize_to_kg(2, "paquete", "Leches") == normalizer.normalize_to_kg(2, "un", "Leches")

    def test_empty_unit_treated_as_count(self, normalizer):
        assert normalizer.normalize_to_kg(1, "", "Leches") == pytest.approx(UNIT_WEIGHTS["Leches"])


class TestInjectedTable:
    def test_custom_table(self):
        normalizer = UnitNormalizer({"Pan": 0.05, UNCATEGORIZED: 1.0})
        assert normalizer.normalize_to_kg(10, "un", "Pan") == pytest.approx(0.5)
        assert normalizer.normalize_to_kg(10, "un", "Otro") == pytest.approx(10.0)

    def test_table_without_fallback_rejected(self):
        with pytest.raises(ValueError):
            UnitNormalizer({"Pan": 0.05})

    def test_results_are_never_negative(self, normalizer):
        for unit in ("kg", "g", "l", "ml", "un", "???"):
            assert normalizer.normalize_to_kg(0, unit, "Carnes") >= 0
