import pytest

from app.services.crop_catalog import (
    STAGE_TABLES,
    crop_duration,
    next_stage,
    resolve_stage,
    stage_table,
)


def test_maize_day_55_is_silking():
    assert resolve_stage("maize", 55) == "silking"


@pytest.mark.parametrize("day,expected", [
    (0, "germination"),
    (7, "germination"),
    (8, "seedling"),
    (45, "vegetative"),
    (46, "tasseling"),
    (95, "maturation"),
])
def test_maize_stage_boundaries(day, expected):
    assert resolve_stage("maize", day) == expected


def test_past_final_stage_stays_on_final_stage():
    assert resolve_stage("maize", 400) == "maturation"
    assert resolve_stage("tomato", 86) == "ripening"


def test_unknown_crop_uses_default_table():
    for day in (0, 11, 50, 90, 500):
        assert resolve_stage("quinoa", day) == resolve_stage("default", day)


def test_crop_lookup_is_case_insensitive():
    assert resolve_stage("  Maize ", 55) == "silking"
    assert crop_duration("RICE") == 120


def test_negative_days_rejected():
    with pytest.raises(ValueError):
        resolve_stage("maize", -1)


def test_stage_tables_are_contiguous_from_day_zero():
    for crop, stages in STAGE_TABLES.items():
        assert stages[0].start_day == 0, crop
        for prev, cur in zip(stages, stages[1:]):
            assert cur.start_day == prev.end_day + 1, crop


def test_duration_lookup_falls_back_to_default():
    assert crop_duration("cassava") == 270
    assert crop_duration("unknown-crop") == 90


def test_stage_table_for_unknown_crop_is_default():
    assert stage_table("okra") == STAGE_TABLES["default"]


def test_next_stage():
    upcoming = next_stage("maize", 55)
    assert upcoming.name == "grain_filling"
    assert upcoming.start_day == 71
    assert next_stage("maize", 90) is None
