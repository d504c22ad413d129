"""Campagnes de densité prédéfinies pour comparer 802.11ac et 802.11ax.

Chaque préréglage fixe une grille standard × nombre de STAs × largeur de
canal. Les comptes de stations encadrent volontairement les deux seuils du
configurateur (RTS/CTS au-delà de 30 STAs, débit oracle au-delà de 50).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

__all__ = [
    "SweepPreset",
    "get_preset",
    "list_presets",
    "describe_presets",
]

STANDARDS: Tuple[str, ...] = ("ac", "ax")
DENSITY_LADDER: Tuple[int, ...] = (5, 10, 20, 30, 31, 50, 51, 75, 100)


@dataclass(frozen=True)
class SweepPreset:
    name: str
    label: str
    description: str
    standards: Tuple[str, ...]
    station_counts: Tuple[int, ...]
    channel_widths: Tuple[int, ...]
    sim_duration_s: float

    @property
    def run_count(self) -> int:
        return len(self.standards) * len(self.station_counts) * len(self.channel_widths)

    def sweep_kwargs(self) -> Dict[str, Tuple]:
        """Arguments de grille attendus par :func:`run_compare`."""

        return {
            "standards": self.standards,
            "station_counts": self.station_counts,
            "channel_widths": self.channel_widths,
        }


_CATALOGUE: Tuple[SweepPreset, ...] = (
    SweepPreset(
        name="quick",
        label="Comparaison rapide",
        description="Une charge faible et une charge dense, pour valider la chaîne",
        standards=STANDARDS,
        station_counts=(10, 40),
        channel_widths=(80,),
        sim_duration_s=10.0,
    ),
    SweepPreset(
        name="density",
        label="Montée en densité",
        description="Franchit les seuils RTS/CTS (30 STAs) et oracle (50 STAs)",
        standards=STANDARDS,
        station_counts=DENSITY_LADDER,
        channel_widths=(80,),
        sim_duration_s=20.0,
    ),
    SweepPreset(
        name="full",
        label="Campagne complète",
        description="Échelle de densité croisée avec toutes les largeurs de canal",
        standards=STANDARDS,
        station_counts=DENSITY_LADDER,
        channel_widths=(20, 40, 80, 160),
        sim_duration_s=20.0,
    ),
)
_BY_NAME: Dict[str, SweepPreset] = {preset.name: preset for preset in _CATALOGUE}


def list_presets() -> Tuple[SweepPreset, ...]:
    return _CATALOGUE


def get_preset(name: str) -> SweepPreset:
    """Nom insensible à la casse ; ``ValueError`` si le préréglage n'existe pas."""

    preset = _BY_NAME.get(name.strip().lower())
    if preset is None:
        raise ValueError(f"Preset inconnu '{name}'. Valeurs possibles : {', '.join(_BY_NAME)}")
    return preset


def describe_presets() -> str:
    lines = ["Préréglages disponibles :"]
    for preset in _CATALOGUE:
        widths = "/".join(str(width) for width in preset.channel_widths)
        stations = ", ".join(str(count) for count in preset.station_counts)
        lines.append(
            f"  {preset.name:<8} {preset.label} ({preset.run_count} runs, "
            f"{preset.sim_duration_s:.0f} s simulées)"
        )
        lines.append(f"           STAs : {stations} ; largeurs : {widths} MHz")
        lines.append(f"           {preset.description}")
    return "\n".join(lines)
