"""CLI pour exécuter un scénario Wi-Fi dense et afficher le résumé des flux."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import yaml

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from wifidense.launcher import (  # noqa: E402
    ConfigurationError,
    ENGINES,
    ScenarioParameters,
    create_engine,
    run_scenario,
)
from wifidense.launcher.engine import SimulationEngine  # noqa: E402
from wifidense.launcher.pipeline import plan_summary  # noqa: E402
from wifidense.launcher.report import (  # noqa: E402
    format_summary,
    write_flow_csv,
    write_report_json,
)


DEFAULT_CONFIG = Path(__file__).with_name("scenarios.yaml")
DEFAULT_SCENARIO = "default"
FLAG_NAMES = (
    "standard",
    "nStas",
    "packetSize",
    "appRate",
    "simTime",
    "channelWidth",
    "useUdp",
    "enablePcap",
    "quietLogs",
    "txPower",
    "distance",
    "seed",
)

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exécute un scénario Wi-Fi dense (N STAs vers un AP) et résume les flux."
    )
    parser.add_argument("--standard", default=None, help="Standard Wi-Fi : 'ac' ou 'ax' (défaut : ax).")
    parser.add_argument("--nStas", type=int, default=None, help="Nombre de stations (défaut : 20).")
    parser.add_argument(
        "--packetSize",
        type=int,
        default=None,
        help="Taille de charge utile applicative en octets (défaut : 1000).",
    )
    parser.add_argument(
        "--appRate",
        default=None,
        help="Débit offert par station, ex. '10Mbps' (défaut : 10Mbps).",
    )
    parser.add_argument("--simTime", type=float, default=None, help="Durée simulée en secondes (défaut : 20).")
    parser.add_argument(
        "--channelWidth",
        type=int,
        default=None,
        help="Largeur de canal en MHz : 20/40/80/160 (défaut : 80).",
    )
    parser.add_argument(
        "--useUdp",
        default=None,
        help="UDP CBR (true) ou TCP BulkSend (false) (défaut : true).",
    )
    parser.add_argument("--enablePcap", default=None, help="Capture pcap côté AP (défaut : false).")
    parser.add_argument(
        "--quietLogs",
        default=None,
        help="Réduit la journalisation du moteur au niveau WARN (défaut : true).",
    )
    parser.add_argument("--txPower", type=float, default=None, help="Puissance d'émission en dBm (défaut : 20).")
    parser.add_argument(
        "--distance",
        type=float,
        default=None,
        help="Côté du carré de placement centré sur l'AP, en mètres (défaut : 10).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Graine du placement aléatoire (défaut : 1).")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Fichier YAML décrivant les scénarios (défaut: %(default)s).",
    )
    parser.add_argument(
        "--scenario",
        default=None,
        help="Scénario du YAML à charger avant les options explicites (défaut : 'default' s'il existe).",
    )
    parser.add_argument(
        "--engine",
        choices=sorted(ENGINES),
        default="analytic",
        help="Moteur de simulation (défaut : %(default)s).",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Répertoire où écrire flows.csv et report.json (optionnel).",
    )
    return parser


def load_yaml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        raise FileNotFoundError(f"Fichier de configuration introuvable: {path}")
    with path.open("r", encoding="utf8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Le fichier YAML doit contenir un dictionnaire racine.")
    return data


def load_scenario(path: Path, name: Optional[str]) -> Dict[str, Any]:
    """Retourne les options du scénario ``name`` (ou du scénario par défaut)."""

    data = load_yaml(path)
    scenarios = data.get("scenarios", {}) or {}
    if not isinstance(scenarios, Mapping):
        raise ValueError("La section 'scenarios' doit être un dictionnaire.")
    if name is None:
        section = scenarios.get(DEFAULT_SCENARIO, {}) or {}
    else:
        if name not in scenarios:
            available = ", ".join(sorted(scenarios))
            raise ValueError(f"Scénario inconnu '{name}'. Valeurs possibles : {available}")
        section = scenarios[name] or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Le scénario '{name or DEFAULT_SCENARIO}' doit être un dictionnaire.")
    return dict(section)


def resolve_parameters(args: argparse.Namespace) -> ScenarioParameters:
    """Fusionne les valeurs par défaut, le YAML puis les options explicites."""

    merged: Dict[str, Any] = {}
    if args.config is not None and (args.scenario is not None or args.config.exists()):
        merged.update(load_scenario(args.config, args.scenario))
    for name in FLAG_NAMES:
        value = getattr(args, name)
        if value is not None:
            merged[name] = value
    return ScenarioParameters.from_mapping(merged)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    engine_factory: Optional[Callable[[], SimulationEngine]] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        params = resolve_parameters(args)
    except ConfigurationError as exc:
        LOGGER.critical("%s", exc)
        return 1
    logging.getLogger("wifidense").setLevel(logging.WARNING if params.quiet_logs else logging.INFO)

    engine = engine_factory() if engine_factory is not None else create_engine(args.engine)
    try:
        outcome = run_scenario(params, engine)
    except ConfigurationError as exc:
        LOGGER.critical("%s", exc)
        return 1

    print(format_summary(params, outcome.report))
    if args.out is not None:
        csv_path = write_flow_csv(outcome.records, args.out / "flows.csv")
        json_path = write_report_json(
            params, outcome.report, args.out / "report.json", plan_summary=plan_summary(outcome.plan)
        )
        LOGGER.info("Flux exportés : %s", csv_path)
        LOGGER.info("Rapport JSON : %s", json_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
