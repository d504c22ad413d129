"""Script CLI pour exécuter une campagne de comparaison ac/ax."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from wifidense.launcher import ENGINES, ScenarioParameters, TransportProtocol  # noqa: E402
from wifidense.scenarios.compare import run_compare  # noqa: E402
from wifidense.scenarios.presets import describe_presets, get_preset, list_presets  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=[preset.name for preset in list_presets()],
        default="quick",
        help="Préréglage de campagne (défaut : %(default)s)",
    )
    parser.add_argument(
        "--station-counts",
        type=int,
        nargs="+",
        default=None,
        help="Remplace la liste des nombres de stations à explorer",
    )
    parser.add_argument(
        "--standards",
        nargs="+",
        default=None,
        help="Remplace la liste des standards (ac, ax)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Durée simulée de chaque run en secondes",
    )
    parser.add_argument("--app-rate", default="10Mbps", help="Débit offert par station")
    parser.add_argument("--tcp", action="store_true", help="Utilise TCP BulkSend au lieu d'UDP")
    parser.add_argument("--seed", type=int, default=1, help="Graine du placement")
    parser.add_argument(
        "--engine",
        choices=sorted(ENGINES),
        default="analytic",
        help="Moteur de simulation (défaut : %(default)s)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Répertoire de sortie du CSV et des figures (défaut : results/compare)",
    )
    parser.add_argument("--no-plot", action="store_true", help="Désactive les figures")
    parser.add_argument("--quiet", action="store_true", help="Réduit les impressions de progression")
    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="Affiche les préréglages disponibles et quitte",
    )
    return parser


def _progress(current: int, total: int, context: Dict[str, Any]) -> None:
    print(
        f"[{current}/{total}] 802.11{context.get('standard')} – "
        f"N={context.get('num_stations')} – {context.get('channel_width_mhz')} MHz"
    )


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    runner=run_compare,
) -> Dict[str, Any]:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.list_presets:
        print(describe_presets())
        return {}
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO, format="%(levelname)s: %(message)s")

    preset = get_preset(args.preset)
    base = ScenarioParameters(
        app_rate=args.app_rate,
        sim_duration_s=args.duration or preset.sim_duration_s,
        transport=TransportProtocol.from_flag(not args.tcp),
        seed=args.seed,
    )
    grid = preset.sweep_kwargs()
    if args.standards:
        grid["standards"] = tuple(args.standards)
    if args.station_counts:
        grid["station_counts"] = tuple(args.station_counts)

    summary = runner(
        **grid,
        base_params=base,
        engine_factory=ENGINES[args.engine],
        output_dir=args.output_dir,
        plot=not args.no_plot,
        progress_callback=None if args.quiet else _progress,
    )
    if not args.quiet:
        print(f"Préréglage : {preset.label}")
        csv_path = summary.get("csv_path")
        if csv_path:
            print(f"Résultats CSV : {csv_path}")
        for figure in summary.get("figures", []):
            print(f"Figure : {figure}")
    return summary


if __name__ == "__main__":
    main()
