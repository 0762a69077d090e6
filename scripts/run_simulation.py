#!/usr/bin/env python3

import argparse, sys, json
from pathlib import Path

# Ensure project root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import yaml
from pydantic import ValidationError

from floodsim.recommendations.generator import StaticRecommendationGenerator
from floodsim.schemas.inputs import BuildingDesignInput
from floodsim.simulation.orchestrator import SimulationOrchestrator


def _load(path: Path):
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(text) or {}
    return json.loads(text or "{}")


def _load_recommendations(path: Path) -> list:
    if path.suffix.lower() in (".json", ".yaml", ".yml"):
        data = _load(path)
        return [str(x) for x in (data or [])]
    return [ln.strip() for ln in path.read_text(encoding="utf-8").splitlines() if ln.strip()]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a flood resilience simulation for one building design."
    )
    parser.add_argument("design", type=str, help="Design payload (JSON or YAML)")
    parser.add_argument(
        "--recommendations-file",
        type=str,
        default=None,
        help="Use fixed recommendations (one per line, or a JSON/YAML list) instead of calling OpenAI",
    )
    parser.add_argument("--current-year", type=int, default=None, help="Override the simulation start year")
    parser.add_argument("--out", type=str, default=None, help="Write result JSON here instead of stdout")
    args = parser.parse_args(argv)

    design_path = Path(args.design)
    if not design_path.exists():
        print(f"[ERROR] Design file not found: {design_path}")
        return 1

    try:
        design = BuildingDesignInput.model_validate(_load(design_path)).to_design()
    except ValidationError as e:
        print(f"[ERROR] Invalid design: {e}")
        return 2

    generator = None
    if args.recommendations_file:
        generator = StaticRecommendationGenerator(_load_recommendations(Path(args.recommendations_file)))

    result = SimulationOrchestrator(generator=generator, current_year=args.current_year).run(design)
    payload = json.dumps(result.to_dict(), indent=2)

    if args.out:
        Path(args.out).write_text(payload, encoding="utf-8")
        print(f"Saved result to: {args.out}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
