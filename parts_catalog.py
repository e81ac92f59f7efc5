"""Static design catalogs: bodies, cosmetics, features, running gear and supplier engines.

These tables are read by the car and engine calculators and by the start-production
availability check.  Unlike the tech and racing catalogs they are not overridable
from ``data/``: save files reference part ids directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class BodyType:
    key: str
    display_name: str
    base_drag: float
    base_weight: int
    base_cost: int
    body_class: str
    unlock_year: int


@dataclass(frozen=True)
class CosmeticPart:
    key: str
    display_name: str
    cost: int
    drag: float
    handling: int
    weight: int
    prestige: int
    unlock_year: int


@dataclass(frozen=True)
class CarFeature:
    key: str
    display_name: str
    unlock_year: int
    cost: int
    weight: int
    safety: int
    comfort: int
    handling: int
    reliability: int
    required_tech: str = ""


@dataclass(frozen=True)
class RunningGearPart:
    key: str
    display_name: str
    unlock_year: int
    cost: int
    weight: int
    comfort: int
    sportiness: int
    adaptability: int
    traction: float = 0.0


@dataclass(frozen=True)
class SupplierEngineSpec:
    key: str
    display_name: str
    layout: str
    block: str
    fuel: str
    valvetrain: str
    induction: str
    bore: float
    stroke: float
    quality: int
    unlock_year: int


BODY_TYPES: Dict[str, BodyType] = {
    "sedan_box": BodyType("sedan_box", "Boxy Sedan", 0.45, 1200, 800, "passenger", 1960),
    "hatch_compact": BodyType("hatch_compact", "Compact Hatch", 0.42, 900, 600, "passenger", 1970),
    "coupe_standard": BodyType("coupe_standard", "Standard Coupe", 0.40, 1300, 1000, "sport", 1960),
    "muscle_fastback": BodyType("muscle_fastback", "Muscle Fastback", 0.38, 1500, 1200, "sport", 1965),
    "pickup_util": BodyType("pickup_util", "Utility Pickup", 0.55, 1800, 900, "utility", 1950),
    "wedge_sport": BodyType("wedge_sport", "Wedge Supercar", 0.32, 1100, 4000, "sport", 1975),
    "minivan_family": BodyType("minivan_family", "Family MPV", 0.40, 1600, 1100, "passenger", 1984),
    "suv_luxury": BodyType("suv_luxury", "Luxury SUV", 0.48, 2200, 2500, "luxury", 1995),
}

COSMETIC_PARTS: Dict[str, Dict[str, CosmeticPart]] = {
    "headlights": {
        "hl_round_sealed": CosmeticPart("hl_round_sealed", "Sealed Beams (Round)", 50, 0.0, 0, 0, 0, 1940),
        "hl_square_sealed": CosmeticPart("hl_square_sealed", "Sealed Beams (Square)", 60, 0.0, 0, 0, 2, 1975),
        "hl_popup": CosmeticPart("hl_popup", "Pop-up Headlights", 350, 0.02, 0, 15, 15, 1968),
        "hl_composite": CosmeticPart("hl_composite", "Composite Halogen", 200, -0.01, 0, 5, 5, 1985),
        "hl_xenon": CosmeticPart("hl_xenon", "Xenon HID", 600, -0.01, 0, 8, 20, 1995),
    },
    "spoilers": {
        "sp_none": CosmeticPart("sp_none", "No Spoiler", 0, 0.0, 0, 0, 0, 1900),
        "sp_lip": CosmeticPart("sp_lip", "Trunk Lip", 100, -0.01, 2, 2, 5, 1970),
        "sp_ducktail": CosmeticPart("sp_ducktail", "Ducktail", 250, 0.01, 5, 5, 10, 1972),
        "sp_whale": CosmeticPart("sp_whale", "Whale Tail", 600, 0.03, 10, 15, 20, 1978),
        "sp_gt_wing": CosmeticPart("sp_gt_wing", "GT Wing", 1200, 0.06, 25, 10, 30, 1990),
    },
    "wheels": {
        "wh_steel": CosmeticPart("wh_steel", "Steelies + Hubcaps", 0, 0.0, 0, 0, 0, 1900),
        "wh_wire": CosmeticPart("wh_wire", "Wire Spokes", 300, 0.01, -2, 5, 25, 1950),
        "wh_mag": CosmeticPart("wh_mag", "Magnesium Alloys", 500, 0.0, 5, -15, 15, 1965),
        "wh_alloy_basic": CosmeticPart("wh_alloy_basic", "Cast Alloy", 250, 0.0, 2, -5, 5, 1980),
        "wh_forged": CosmeticPart("wh_forged", "Forged Performance", 1000, 0.0, 10, -10, 20, 1990),
    },
    "roof": {
        "rf_solid": CosmeticPart("rf_solid", "Solid Roof", 0, 0.0, 2, 0, 0, 1900),
        "rf_vinyl": CosmeticPart("rf_vinyl", "Vinyl Top", 200, 0.01, 0, 5, 10, 1965),
        "rf_sunroof": CosmeticPart("rf_sunroof", "Sunroof (Manual)", 400, 0.01, -2, 15, 15, 1975),
        "rf_targa": CosmeticPart("rf_targa", "T-Top / Targa", 800, 0.02, -10, 40, 35, 1970),
        "rf_convertible": CosmeticPart("rf_convertible", "Convertible Soft-top", 1500, 0.05, -20, 80, 50, 1950),
    },
}

CAR_FEATURES: Dict[str, Dict[str, CarFeature]] = {
    "transmission": {
        "trans_manual_4": CarFeature("trans_manual_4", "4-Speed Manual", 1950, 300, 40, 0, 0, 0, 5),
        "trans_manual_5": CarFeature("trans_manual_5", "5-Speed Manual", 1975, 500, 45, 0, 5, 5, 2),
        "trans_auto_3": CarFeature("trans_auto_3", "3-Speed Auto", 1960, 800, 70, 0, 15, -5, -5),
        "trans_auto_4": CarFeature("trans_auto_4", "4-Speed Auto", 1982, 1200, 75, 0, 20, -2, 0),
    },
    "steering": {
        "str_rack": CarFeature("str_rack", "Rack & Pinion (Mech)", 1940, 100, 15, 0, 0, 5, 10),
        "str_hydro": CarFeature("str_hydro", "Hydraulic Power Steering", 1951, 400, 25, 2, 20, 15, -5, "tech_power_steering"),
        "str_electric": CarFeature("str_electric", "Electric Power Steering", 1995, 600, 20, 5, 25, 10, 0, "tech_eps"),
    },
    "seatbelts": {
        "sb_2point": CarFeature("sb_2point", "2-Point Lap Belts", 1940, 50, 5, 10, -2, 0, 0),
        "sb_3point": CarFeature("sb_3point", "3-Point Belts", 1959, 150, 8, 30, -5, 0, 0),
        "sb_pretension": CarFeature("sb_pretension", "Pretensioner Belts", 1980, 400, 12, 45, -5, 0, -2, "tech_adv_safety"),
    },
    "airbags": {
        "ab_none": CarFeature("ab_none", "No Airbags", 1900, 0, 0, 0, 0, 0, 0),
        "ab_driver": CarFeature("ab_driver", "Driver Airbag", 1980, 500, 10, 20, 0, 0, -2, "tech_airbags"),
        "ab_dual": CarFeature("ab_dual", "Dual Front Airbags", 1988, 900, 18, 35, 0, 0, -4, "tech_airbags"),
        "ab_full": CarFeature("ab_full", "Curtain & Side Airbags", 1998, 1800, 35, 60, 0, 0, -8, "tech_adv_safety"),
    },
    "interior": {
        "int_basic": CarFeature("int_basic", "Basic Cloth/Vinyl", 1900, 200, 30, 0, 10, 0, 10),
        "int_prem_cloth": CarFeature("int_prem_cloth", "Premium Velour", 1970, 800, 40, 2, 30, 0, 5),
        "int_sport": CarFeature("int_sport", "Sport Alcantara", 1985, 1200, 25, 5, 20, 10, 5),
        "int_leather": CarFeature("int_leather", "Luxury Leather", 1950, 2500, 60, 5, 50, -5, 5),
    },
    "infotainment": {
        "info_none": CarFeature("info_none", "None", 1900, 0, 0, 0, 0, 0, 0),
        "info_radio": CarFeature("info_radio", "AM/FM Radio", 1950, 150, 5, 0, 10, 0, 0),
        "info_tape": CarFeature("info_tape", "Cassette Player", 1970, 300, 6, 0, 20, 0, -2),
        "info_cd": CarFeature("info_cd", "CD Player", 1985, 500, 8, 0, 30, 0, -5),
        "info_nav": CarFeature("info_nav", "SatNav System", 1995, 1500, 12, 0, 45, 0, -10, "tech_electronics"),
    },
    "assists": {
        "assist_none": CarFeature("assist_none", "None", 1900, 0, 0, 0, 0, 0, 0),
        "assist_abs": CarFeature("assist_abs", "ABS (Anti-Lock Brakes)", 1978, 600, 15, 25, 5, 10, -5, "tech_abs"),
        "assist_tc": CarFeature("assist_tc", "Traction Control", 1987, 800, 10, 20, 5, 15, -8, "tech_abs"),
        "assist_esc": CarFeature("assist_esc", "ESC (Stability Control)", 1995, 1200, 12, 40, 10, 20, -10, "tech_adv_safety"),
    },
}

DRIVETRAINS: Dict[str, RunningGearPart] = {
    "drive_fwd": RunningGearPart("drive_fwd", "FWD (Front Wheel Drive)", 1960, 500, 100, 5, -5, 0, 0.75),
    "drive_rwd": RunningGearPart("drive_rwd", "RWD (Rear Wheel Drive)", 1900, 800, 150, 5, 15, 0, 0.85),
    "drive_awd": RunningGearPart("drive_awd", "AWD (All Wheel Drive)", 1980, 1500, 220, 10, 10, 15, 0.95),
    "drive_4x4": RunningGearPart("drive_4x4", "4x4 (Off-Road)", 1940, 1200, 300, -10, -20, 40, 0.90),
}

SUSPENSIONS: Dict[str, RunningGearPart] = {
    "susp_leaf": RunningGearPart("susp_leaf", "Leaf Springs", 1900, 200, 80, -15, -10, 20),
    "susp_coil": RunningGearPart("susp_coil", "MacPherson / Coil", 1950, 500, 60, 5, 5, 5),
    "susp_multilink": RunningGearPart("susp_multilink", "Multi-Link", 1985, 1000, 90, 20, 25, -5),
    "susp_air": RunningGearPart("susp_air", "Air Suspension", 1990, 2000, 120, 30, 5, 15),
}

TIRES: Dict[str, RunningGearPart] = {
    "tire_eco": RunningGearPart("tire_eco", "Eco / Hard Compound", 1900, 200, 0, -5, -10, 0),
    "tire_sport": RunningGearPart("tire_sport", "Sport / Soft Compound", 1960, 600, 0, 0, 30, -20),
    "tire_all_terrain": RunningGearPart("tire_all_terrain", "All-Terrain", 1970, 400, 10, 0, -5, 20),
    "tire_mud": RunningGearPart("tire_mud", "Mud-Terrain", 1950, 500, 20, -15, -20, 50),
}

SUPPLIER_ENGINES: List[SupplierEngineSpec] = [
    SupplierEngineSpec("sup_kaiyo_16", "Kaiyo 1.6 Economy", "I4", "cast_iron", "gasoline", "sohc", "na", 78.0, 83.0, 50, 1970),
    SupplierEngineSpec("sup_detroit_57", "Detroit 5.7 V8", "V8", "cast_iron", "gasoline", "ohv", "na", 101.0, 88.0, 40, 1968),
    SupplierEngineSpec("sup_brenner_30d", "Brenner 3.0 Diesel", "I6", "cast_iron", "diesel", "sohc", "na", 86.0, 86.0, 60, 1975),
    SupplierEngineSpec("sup_sakura_30t", "Sakura 3.0 Turbo", "V6", "aluminum", "gasoline", "dohc", "turbo", 87.0, 84.0, 70, 1986),
]


def first_key(table: Dict[str, object]) -> str:
    return next(iter(table))
