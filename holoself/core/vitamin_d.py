"""
Vitamin D3 calculator — sun exposure and supplement dose from UV index,
Fitzpatrick skin type, latitude and month.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

# Type 3-4: lightskin Afro-Brazilian + Euro-Portuguese
DEFAULT_SKIN_TYPE = 4
# Lisbon
PORTUGAL_LATITUDE = 38.7

# Minimal Erythemal Dose in minutes at UV 6, by Fitzpatrick type
BASE_MED_MINUTES: dict[int, float] = {
    1: 10.0,
    2: 15.0,
    3: 20.0,
    4: 30.0,
    5: 45.0,
    6: 60.0,
}

MIN_MINUTES = 10
MAX_MINUTES = 120


class VitaminDRecommendation(BaseModel):
    uv_index: float
    skin_type: int
    latitude: float
    optimal_minutes: int
    best_window: str
    d3_iu_supplement: int
    note: str


def calculate(
    uv_index: float,
    skin_type: int | None = None,
    latitude: float | None = None,
    month: int = 1,
) -> VitaminDRecommendation:
    skin = skin_type if skin_type is not None else DEFAULT_SKIN_TYPE
    lat = latitude if latitude is not None else PORTUGAL_LATITUDE

    base_med = BASE_MED_MINUTES.get(skin, 30.0)
    # at UV 1 roughly 6x the time needed at UV 6
    uv_factor = 6.0 / uv_index if uv_index > 0 else 10.0
    # 50% of MED is the safe exposure
    minutes = math.floor(base_med * uv_factor * 0.5 + 0.5)
    optimal_minutes = max(MIN_MINUTES, min(MAX_MINUTES, minutes))

    best_window = sun_window(lat, month)
    d3_iu = supplement_iu(uv_index, skin)

    if uv_index < 2.0:
        note = (
            f"UV muito baixo ({uv_index:.0f}). Em Portugal no inverno, é quase impossível "
            f"sintetizar Vitamina D suficiente. Suplementação de {d3_iu}IU/dia é "
            f"essencial para fototipo {skin}."
        )
    elif uv_index < 4.0:
        note = (
            f"UV moderado ({uv_index:.0f}). {optimal_minutes} minutos de exposição solar "
            f"diária no período {best_window} com braços e rosto expostos. "
            f"Suplementar {d3_iu}IU/dia como apoio."
        )
    else:
        note = (
            f"UV bom ({uv_index:.0f}). {optimal_minutes} minutos de exposição solar no "
            f"período {best_window} são suficientes. Sem necessidade de suplementação extra."
        )

    return VitaminDRecommendation(
        uv_index=uv_index,
        skin_type=skin,
        latitude=lat,
        optimal_minutes=optimal_minutes,
        best_window=best_window,
        d3_iu_supplement=d3_iu,
        note=note,
    )


def sun_window(latitude: float, month: int) -> str:
    if latitude > 45.0:
        return "11:30 - 13:30"
    if latitude > 35.0:
        if month in (11, 12, 1, 2):
            return "11:00 - 14:00"
        if month in (3, 4, 9, 10):
            return "11:00 - 15:00"
        return "10:00 - 16:00"
    return "10:00 - 16:00"


def supplement_iu(uv_index: float, skin: int) -> int:
    """Daily D3 dose when the sun alone is not enough; darker skin needs more."""
    if uv_index < 3.0:
        table = {1: 2000, 2: 2000, 3: 3000, 4: 3000}
        return table.get(skin, 4000)
    if uv_index < 5.0:
        table = {1: 1000, 2: 1000, 3: 2000, 4: 2000}
        return table.get(skin, 3000)
    return 0 if 1 <= skin <= 3 else 1000
