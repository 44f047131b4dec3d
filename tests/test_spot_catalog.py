import json

import pytest
from pydantic import ValidationError

from surfscore.config.settings import get_settings
from surfscore.domain.errors import UnknownSpotError
from surfscore.domain.models import GeoPoint, SpotCharacteristics
from surfscore.spots.catalog import SpotCatalog, load_spot_catalog


def test_bundled_catalog_loads():
    catalog = load_spot_catalog(get_settings().spots.path)
    assert catalog.names() == ["Biarritz", "Hossegor", "Anglet"]
    assert len(catalog) == 3
    assert "ANGLET" in catalog
    assert catalog.require(" hossegor ").coordinates.lat == pytest.approx(43.6615)


def test_unknown_spot_lists_known_ones():
    catalog = load_spot_catalog(get_settings().spots.path)
    assert catalog.get("Mundaka") is None
    with pytest.raises(UnknownSpotError) as exc:
        catalog.require("Mundaka")
    assert "Biarritz" in exc.value.message
    assert exc.value.as_detail()["code"] == "UNKNOWN_SPOT"


def test_directions_are_normalized_and_deduplicated(tmp_path):
    path = tmp_path / "spots.json"
    path.write_text(
        json.dumps(
            [
                {
                    "name": "Lafitenia",
                    "coordinates": {"lat": 43.41, "lon": -1.63},
                    "optimalWindDirections": ["se", "SE", "S"],
                    "optimalWaveDirections": ["315", "nw", "w"],
                }
            ]
        ),
        encoding="utf-8",
    )
    spot = load_spot_catalog(path).require("lafitenia")
    assert spot.optimal_wind_directions == ["SE", "S"]
    assert spot.optimal_wave_directions == ["NW", "W"]


def test_invalid_catalog_entries_are_rejected(tmp_path):
    path = tmp_path / "spots.json"
    path.write_text(json.dumps([{"name": "X", "coordinates": {"lat": 95, "lon": 0}}]), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_spot_catalog(path)

    with pytest.raises(ValidationError):
        SpotCharacteristics(name="Y", coordinates=GeoPoint(lat=0, lon=0), optimal_wind_directions=["upwind"])


def test_duplicate_names_are_rejected():
    spot = SpotCharacteristics(name="Anglet", coordinates=GeoPoint(lat=43.5, lon=-1.5))
    with pytest.raises(ValueError, match="Duplicate"):
        SpotCatalog([spot, spot.model_copy(update={"name": "anglet "})])
