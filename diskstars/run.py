"""Command line runner evolving a star population for several timesteps."""
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config_utils
from .disk import build_disk_environment
from .io import writer
from .population import load_population, population_to_frame
from .schema import Config
from .stepper import EvolutionResult, StarMassParams, evolve

logger = logging.getLogger(__name__)

__all__ = ["run_population", "main"]


def run_population(cfg: Config, population_path: Path) -> EvolutionResult:
    """Evolve the population stored at ``population_path`` and write outputs."""

    population = load_population(population_path)
    disk = build_disk_environment(cfg)
    params = StarMassParams.from_config(cfg)
    logger.info(
        "run_population: n_stars=%d n_steps=%d dt=%e yr order=%s",
        len(population),
        cfg.numerics.n_steps,
        cfg.timestep.duration_yr,
        cfg.numerics.order,
    )
    t0 = time.perf_counter()
    result = evolve(
        population,
        disk,
        params,
        cfg.timestep.duration_yr,
        cfg.numerics.n_steps,
        order=cfg.numerics.order,
        use_numba=cfg.numerics.use_numba,
        enforce_mass_budget=cfg.numerics.enforce_mass_budget,
        mass_budget_tolerance=cfg.numerics.mass_budget_tolerance,
    )
    elapsed = time.perf_counter() - t0

    outdir = Path(cfg.io.outdir)
    fmt = cfg.io.step_diagnostics_format
    ext = "jsonl" if fmt == "jsonl" else "csv"
    writer.write_step_diagnostics(
        [diag.as_dict() for diag in result.diagnostics],
        outdir / "series" / f"step_diagnostics.{ext}",
        fmt=fmt,
    )
    writer.write_parquet(population_to_frame(result.population), outdir / "population_final.parquet")
    summary: Dict[str, Any] = {
        "population": str(population_path),
        "n_stars": len(result.population),
        "mass_initial": population.total_mass,
        "mass_final": result.population.total_mass,
        "ledger": result.ledger.as_dict(),
        "config": cfg.model_dump(mode="json"),
        "runtime_s": elapsed,
        "versions": config_utils.package_versions(),
    }
    writer.write_summary(summary, outdir / "summary.json")
    logger.info("run_population: wrote outputs to %s in %.3f s", outdir, elapsed)
    return result


def main(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""

    parser = argparse.ArgumentParser(description="Evolve embedded star masses (wind loss and accretion)")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration (defaults if omitted)")
    parser.add_argument("--population", type=Path, required=True, help="CSV or Parquet star population")
    parser.add_argument(
        "--override",
        action="append",
        nargs="+",
        metavar="PATH=VALUE",
        help="Apply configuration overrides using dotted paths; e.g. --override stars.initial_mass_cutoff=150",
    )
    parser.add_argument(
        "--overrides-file",
        action="append",
        type=Path,
        help="Load overrides from a file (one PATH=VALUE per line).",
    )
    parser.add_argument(
        "--enforce-mass-budget",
        action="store_true",
        help="Abort when a step's relative mass budget error exceeds numerics.mass_budget_tolerance",
    )
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Suppress INFO logs and Python warnings (defaults to io.quiet).",
    )
    args = parser.parse_args(argv)

    overrides: List[str] = []
    for path in args.overrides_file or []:
        overrides.extend(config_utils.read_overrides_file(path))
    for group in args.override or []:
        overrides.extend(group)
    if args.enforce_mass_budget:
        overrides.append("numerics.enforce_mass_budget=true")
    cfg = config_utils.load_config(args.config, overrides)

    quiet = cfg.io.quiet if args.quiet is None else bool(args.quiet)
    config_utils.configure_logging(logging.WARNING if quiet else logging.INFO, suppress_warnings=quiet)
    run_population(cfg, args.population)


if __name__ == "__main__":  # pragma: no cover - standard CLI entrypoint
    main()
