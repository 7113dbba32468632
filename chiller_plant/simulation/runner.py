"""
Operating-Point Runner and CLI.

Evaluates the chillers of a plant file at the operating points the file
lists and writes the results to ``results.json``.

Workflow:
    1. Load plant configuration from YAML/JSON.
    2. Build the registry via PlantBuilder.
    3. Initialize all chillers (reference curve checks).
    4. For each operating point, set loop boundary conditions and run one
       plant call on the named chiller.
    5. Export per-point states and the diagnostics summary.
"""

from pathlib import Path
from typing import Optional, Dict, Any, List
import argparse
import json
import logging
import sys

import numpy as np

from chiller_plant.config.plant_builder import PlantBuilder
from chiller_plant.config.models import OperatingPointConfig
from chiller_plant.components.thermal.chiller import ReformulatedEIRChiller
from chiller_plant.core.exceptions import ChillerPlantError

logger = logging.getLogger(__name__)


class NpEncoder(json.JSONEncoder):
    """JSON encoder that converts NumPy scalars/arrays and paths."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, Path):
            return str(obj)
        return super(NpEncoder, self).default(obj)


def apply_operating_point(chiller: ReformulatedEIRChiller, point: OperatingPointConfig) -> None:
    """
    Set the boundary conditions of one operating point on the chiller's loops.

    Availability defaults to the chiller's design flows. With ``flow_locked``
    the loops are locked at that availability, as the plant solver would
    do on a later iteration.
    """
    spec = chiller.spec

    evap_max = point.evap_flow_max_kg_s
    if evap_max is None:
        evap_max = spec.design_evap_mass_flow_kg_s
    cond_max = point.cond_flow_max_kg_s
    if cond_max is None:
        cond_max = spec.design_cond_mass_flow_kg_s

    connections = [
        (chiller.evap, point.evap_inlet_temp_c, evap_max),
        (chiller.cond, point.cond_inlet_temp_c, cond_max),
    ]
    if chiller.heat_rec is not None:
        hr_flow = spec.heat_recovery.design_mass_flow_kg_s if spec.heat_recovery is not None else 0.0
        hr_temp = point.heat_rec_inlet_temp_c
        if hr_temp is None:
            hr_temp = chiller.heat_rec.inlet_node.temp
        connections.append((chiller.heat_rec, hr_temp, hr_flow))

    for connection, inlet_temp, max_avail in connections:
        connection.inlet_node.temp = inlet_temp
        connection.inlet_node.mass_flow_rate_max_avail = max_avail
        connection.loop.flow_locked = point.flow_locked
        if point.flow_locked:
            connection.inlet_node.mass_flow_rate = max_avail
            connection.outlet_node.mass_flow_rate = max_avail

    chiller.set_demand(point.load_w, point.run, point.first_iteration)


def run_operating_points(plant: PlantBuilder) -> List[Dict[str, Any]]:
    """
    Run every configured operating point in order.

    Args:
        plant: Built plant with an uninitialized registry.

    Returns:
        One result dictionary per operating point.

    Raises:
        ChillerPlantError: On configuration or fatal runtime errors.
    """
    registry = plant.registry
    registry.initialize_all(dt=plant.config.timestep_hours)

    results = []
    for index, point in enumerate(plant.config.operating_points):
        chiller = registry.get(point.chiller)
        apply_operating_point(chiller, point)
        chiller.step(point.time_hours)

        state = chiller.get_state()
        results.append({
            "index": index,
            "chiller": point.chiller,
            "requested_load_w": point.load_w,
            **state,
        })
        logger.info(
            f"Point {index} ({point.chiller}): load={chiller.delivered_load:.1f} W, "
            f"P={chiller.state.power:.1f} W, T_cond_out={chiller.state.cond_outlet_temp:.2f} C, "
            f"path={state['solver']['path']}"
        )
    return results


def run_from_config(config_path: Path | str, output_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Run all operating points of a plant file and write results.json.

    Args:
        config_path (Path | str): Path to the plant configuration YAML/JSON.
        output_dir (Path, optional): Directory for outputs.
            Default: './simulation_output'.

    Returns:
        Dict[str, Any]: Results including per-point states and diagnostics.

    Example:
        >>> results = run_from_config("configs/chiller_baseline.yaml")
        >>> results["points"][0]["state"]["power"]
    """
    logger.info(f"Running operating points from config: {config_path}")

    plant = PlantBuilder.from_file(config_path)
    points = run_operating_points(plant)

    plant.sink.log_summary()
    results = {
        "plant": plant.config.name,
        "version": plant.config.version,
        "points": points,
        "diagnostics": plant.sink.summary(),
    }

    output_dir = Path(output_dir or "simulation_output")
    output_dir.mkdir(parents=True, exist_ok=True)
    results_path = output_dir / "results.json"
    with open(results_path, 'w') as f:
        json.dump(results, f, indent=2, cls=NpEncoder)
    logger.info(f"Results saved to: {results_path}")

    return results


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point for command-line execution.

    Usage:
        chiller-simulate configs/chiller_baseline.yaml --output ./results
    """
    parser = argparse.ArgumentParser(description="Evaluate reformulated-EIR chillers at configured operating points.")
    parser.add_argument("config_file", type=str, help="Path to the plant configuration YAML/JSON file.")
    parser.add_argument("--output", type=str, default="simulation_output", help="Directory for simulation outputs.")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level.")

    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        run_from_config(config_path=args.config_file, output_dir=Path(args.output))
    except ChillerPlantError as e:
        logger.error(f"Simulation failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
