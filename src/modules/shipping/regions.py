"""Brazilian states grouped by the regions used for shipping prices."""

from __future__ import annotations

from typing import Optional

STATE_REGIONS: dict[str, str] = {
    "AC": "norte",
    "AL": "nordeste",
    "AP": "norte",
    "AM": "norte",
    "BA": "nordeste",
    "CE": "nordeste",
    "DF": "centro-oeste",
    "ES": "sudeste",
    "GO": "centro-oeste",
    "MA": "nordeste",
    "MT": "centro-oeste",
    "MS": "centro-oeste",
    "MG": "sudeste",
    "PA": "norte",
    "PB": "nordeste",
    "PR": "sul",
    "PE": "nordeste",
    "PI": "nordeste",
    "RJ": "sudeste",
    "RN": "nordeste",
    "RS": "sul",
    "RO": "norte",
    "RR": "norte",
    "SC": "sul",
    "SP": "sudeste",
    "SE": "nordeste",
    "TO": "norte",
}


def region_for_state(state: Optional[str]) -> Optional[str]:
    if not state:
        return None
    return STATE_REGIONS.get(state.strip().upper())
