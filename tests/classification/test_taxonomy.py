"""Tests for the master taxonomy loader and CO2 validation."""
import json

import pytest

from app.classification.models import ValidationLevel
from app.classification.taxonomy import TaxonomyLoadError, load_taxonomy, parse_taxonomy


def entry(green=1.0, yellow=2.5, red=2.5, **extra):
    data = {
        "mean_footprint_per_kg": 0.7,
        "range_min": 0.1,
        "range_max": 2.5,
        "green_upper_bound": green,
        "yellow_upper_bound": yellow,
        "red_lower_bound": red,
        "sources": ["test source"],
    }
    data.update(extra)
    return data


class TestLoading:
    def test_bundled_table(self, taxonomy):
        names = taxonomy.subcategory_names()
        assert names[0] == "Frutas y Verduras"
        assert "Carnes" in taxonomy
        assert len(names) == len(set(names))

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaxonomyLoadError):
            load_taxonomy(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TaxonomyLoadError):
            load_taxonomy(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(TaxonomyLoadError):
            load_taxonomy(path)

    def test_missing_field(self):
        broken = entry()
        del broken["green_upper_bound"]
        with pytest.raises(TaxonomyLoadError):
            parse_taxonomy({"version": "1", "subcategories": {"X": broken}})

    def test_bounds_out_of_order(self):
        with pytest.raises(TaxonomyLoadError):
            parse_taxonomy({"version": "1", "subcategories": {"X": entry(green=3.0, yellow=2.0, red=4.0)}})

    def test_empty_taxonomy(self):
        with pytest.raises(TaxonomyLoadError):
            parse_taxonomy({"version": "1", "subcategories": {}})

    def test_round_trip_from_disk(self, tmp_path):
        path = tmp_path / "table.json"
        path.write_text(json.dumps({"version": "9", "subcategories": {"Pan": entry()}}), encoding="utf-8")
        taxonomy = load_taxonomy(path)
        assert taxonomy.version == "9"
        assert taxonomy.subcategory_names() == ["Pan"]


class TestQueries:
    def test_search_is_case_insensitive(self, taxonomy):
        assert "Frutas y Verduras" in taxonomy.search("VERDU")
        assert taxonomy.search("zzz") == []

    def test_ranges_for_unknown(self, taxonomy):
        assert taxonomy.ranges_for("Nope") is None


class TestValidateCo2:
    def test_levels_follow_bounds(self, taxonomy):
        assert taxonomy.validate_co2("Frutas y Verduras", 0.5).level is ValidationLevel.GREEN
        assert taxonomy.validate_co2("Frutas y Verduras", 1.0).level is ValidationLevel.GREEN
        assert taxonomy.validate_co2("Frutas y Verduras", 2.0).level is ValidationLevel.YELLOW
        assert taxonomy.validate_co2("Frutas y Verduras", 2.6).level is ValidationLevel.RED

    def test_known_subcategory_reports_its_ranges(self, taxonomy):
        result = taxonomy.validate_co2("Carnes", 40.0)
        assert result.level is ValidationLevel.RED
        assert result.ranges.green_up_to == 10.0
        assert result.ranges.mean_footprint == 35.0
        assert result.co2_per_kg == 40.0
        assert "estimated" not in result.message

    def test_unknown_subcategory_uses_default_ranges(self, taxonomy):
        result = taxonomy.validate_co2("Sin categoría", 3.0)
        assert result.level is ValidationLevel.YELLOW
        assert (result.ranges.green_up_to, result.ranges.yellow_up_to, result.ranges.red_from) == (2.0, 5.0, 5.0)
        assert result.ranges.mean_footprint == 3.0
        assert result.sources == ["Estimated - subcategory not found"]
        assert result.message.endswith("(estimated)")
