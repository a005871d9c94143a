"""
Static crop lifecycle tables and the growth stage resolver.

Every table is keyed by lowercase crop name and carries a "default" entry.
Stage ranges are inclusive day offsets from planting, contiguous and starting at 0.
Nothing here touches settings, the database or the network.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, TypeVar

DEFAULT_KEY = "default"
PRE_PLANTING_STAGE = "pre-planting"

T = TypeVar("T")


@dataclass(frozen=True)
class GrowthStage:
    name: str
    start_day: int
    end_day: int

    def contains(self, day: int) -> bool:
        return self.start_day <= day <= self.end_day


@dataclass(frozen=True)
class CropProfile:
    duration_days: int
    stages: tuple[GrowthStage, ...]
    harvest_signs: tuple[str, ...]


# ── Stage tables ──────────────────────────────────────────────────────────────

_STAGES: dict[str, tuple[GrowthStage, ...]] = {
    "maize": (
        GrowthStage("germination", 0, 7),
        GrowthStage("seedling", 8, 21),
        GrowthStage("vegetative", 22, 45),
        GrowthStage("tasseling", 46, 50),
        GrowthStage("silking", 51, 70),
        GrowthStage("grain_filling", 71, 85),
        GrowthStage("maturation", 86, 95),
    ),
    "rice": (
        GrowthStage("germination", 0, 10),
        GrowthStage("seedling", 11, 25),
        GrowthStage("tillering", 26, 50),
        GrowthStage("stem_elongation", 51, 70),
        GrowthStage("booting", 71, 85),
        GrowthStage("heading", 86, 95),
        GrowthStage("ripening", 96, 120),
    ),
    "tomato": (
        GrowthStage("germination", 0, 10),
        GrowthStage("seedling", 11, 25),
        GrowthStage("vegetative", 26, 40),
        GrowthStage("flowering", 41, 55),
        GrowthStage("fruiting", 56, 70),
        GrowthStage("ripening", 71, 85),
    ),
    DEFAULT_KEY: (
        GrowthStage("germination", 0, 10),
        GrowthStage("vegetative", 11, 45),
        GrowthStage("reproductive", 46, 75),
        GrowthStage("maturation", 76, 100),
    ),
}

# ── Days from planting to expected harvest ────────────────────────────────────

_DURATIONS: dict[str, int] = {
    "maize": 90,
    "rice": 120,
    "tomato": 75,
    "pepper": 90,
    "cassava": 270,
    "yam": 240,
    "groundnut": 120,
    "beans": 90,
    "soybean": 100,
    "sorghum": 110,
    "millet": 90,
    "wheat": 120,
    "cowpea": 70,
    DEFAULT_KEY: 90,
}

# ── Maturity indicators ───────────────────────────────────────────────────────

_HARVEST_SIGNS: dict[str, tuple[str, ...]] = {
    "maize": (
        "Husks turn dry and brown",
        "Kernels dent when pressed",
        "Milk line moved to kernel base",
        "Grain moisture around 25-30%",
    ),
    "rice": (
        "Grains turn golden yellow",
        "80% of panicles have matured",
        "Straw starts turning yellow",
        "Grain moisture around 20-25%",
    ),
    "tomato": (
        "Fruits turn fully red",
        "Firm but slightly soft to press",
        "Easy separation from vine",
        "Uniform color on entire fruit",
    ),
    "pepper": (
        "Full color development (red/yellow)",
        "Fruits are firm and glossy",
        "Easy snap from plant",
        "Seeds inside are mature",
    ),
    "cassava": (
        "Leaves turn yellow and fall",
        "Stems become woody",
        "Tuber skin cracks when pressed",
        "Starch content test (iodine)",
    ),
    "yam": (
        "Vines turn yellow and dry",
        "Tubers feel firm when touched",
        "Skin is thick and brown",
        "No more active growth visible",
    ),
    DEFAULT_KEY: (
        "Crop shows physical maturity signs",
        "Growth has stopped",
        "Optimal moisture content reached",
    ),
}

STAGE_TABLES: Mapping[str, tuple[GrowthStage, ...]] = MappingProxyType(_STAGES)
CROP_DURATIONS: Mapping[str, int] = MappingProxyType(_DURATIONS)
HARVEST_SIGNS: Mapping[str, tuple[str, ...]] = MappingProxyType(_HARVEST_SIGNS)


def lookup(table: Mapping[str, T], crop: str) -> T:
    """Case-insensitive lookup falling back to the table's default entry."""
    key = (crop or "").strip().lower()
    return table.get(key, table[DEFAULT_KEY])


def stage_table(crop: str) -> tuple[GrowthStage, ...]:
    return lookup(STAGE_TABLES, crop)


def crop_duration(crop: str) -> int:
    return lookup(CROP_DURATIONS, crop)


def crop_profile(crop: str) -> CropProfile:
    return CropProfile(
        duration_days=crop_duration(crop),
        stages=stage_table(crop),
        harvest_signs=lookup(HARVEST_SIGNS, crop),
    )


# ── Stage resolution ──────────────────────────────────────────────────────────


def resolve_stage(crop: str, days_since_planting: int) -> str:
    """
    Return the growth stage name for a crop on a given day after planting.

    Days past the final stage stay pinned to the final stage name. Negative days
    are outside the domain: callers report PRE_PLANTING_STAGE themselves.
    """
    if days_since_planting < 0:
        raise ValueError(f"days_since_planting must be >= 0, got {days_since_planting}")

    stages = stage_table(crop)
    for stage in stages:
        if stage.contains(days_since_planting):
            return stage.name
    return stages[-1].name


def next_stage(crop: str, days_since_planting: int) -> Optional[GrowthStage]:
    """The first stage starting after the given day, or None at the final stage."""
    for stage in stage_table(crop):
        if stage.start_day > days_since_planting:
            return stage
    return None
