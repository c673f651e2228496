#!/usr/bin/env python3
"""
Command-line runner for pre and post LSFF adequacy summaries

Reads the input tables from disk, runs the adequacy pipeline and writes the
summary table together with a lineage file.

Usage:
    lsff-adequacy --consumption <csv> --household-details <csv> --nct <csv> \\
        --thresholds <csv> --fortifiable-foods <csv> --fortification-levels <csv> \\
        [--config <yaml>] [--output <csv>] [--log-file <path>]

Example:
    lsff-adequacy --consumption data/consumption.csv \\
        --household-details data/households.csv --nct data/nct.csv \\
        --thresholds data/thresholds.csv --fortifiable-foods data/vehicles.csv \\
        --fortification-levels data/levels.csv --output outputs/summary.csv
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import yaml

from .calculators.thresholds import FortificationLevelLookup
from .pipeline import compute_adequacy_summary
from .settings import load_config
from .utilities.common import (
    create_data_lineage_file,
    get_project_root,
    load_table,
    save_table,
    setup_logging,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = get_project_root() / "config" / "lsff_config.yaml"


class PipelineRunner:
    """
    Load inputs, compute the adequacy summary and export it
    """

    def __init__(self, inputs: Dict[str, Path], config_path: Path, output_path: Path):
        """
        Initialize runner

        Args:
            inputs: Paths keyed by consumption, household_details, nct,
                thresholds, fortifiable_foods and fortification_levels
            config_path: YAML run configuration
            output_path: Where to write the summary table
        """
        self.inputs = inputs
        self.config_path = config_path
        self.output_path = output_path

        self.tables: Dict[str, pd.DataFrame] = {}
        self.summary: Optional[pd.DataFrame] = None
        self.config = None

        self.steps_completed: List[str] = []
        self.steps_failed: List[str] = []

    def step_load(self) -> bool:
        """Step 1: Load configuration and input tables"""
        logger.info("STEP 1: LOAD INPUTS")

        self.config = load_config(self.config_path)
        for name, path in self.inputs.items():
            self.tables[name] = load_table(Path(path))
        return True

    def step_compute(self) -> bool:
        """Step 2: Compute the adequacy summary"""
        logger.info("STEP 2: COMPUTE ADEQUACY SUMMARY")

        self.summary = compute_adequacy_summary(
            consumption=self.tables['consumption'],
            household_details=self.tables['household_details'],
            nct_table=self.tables['nct'],
            intake_thresholds=self.tables['thresholds'],
            fortifiable_food_items=self.tables['fortifiable_foods'],
            fortification_level=FortificationLevelLookup(self.tables['fortification_levels']),
            config=self.config,
        )
        return True

    def step_export(self) -> bool:
        """Step 3: Write the summary and its lineage"""
        logger.info("STEP 3: EXPORT SUMMARY")

        save_table(self.summary, self.output_path)
        create_data_lineage_file(
            self.output_path,
            source_files=[Path(p) for p in self.inputs.values()],
            processing_steps=self.steps_completed + ["Export"],
            additional_info={'config': self.config.to_dict()},
        )
        return True

    def run(self) -> bool:
        """
        Run all steps, stopping at the first failure

        Returns:
            True if all steps succeeded
        """
        start_time = datetime.now()

        steps = [
            ("Load", self.step_load),
            ("Compute", self.step_compute),
            ("Export", self.step_export),
        ]

        for step_name, step_func in steps:
            try:
                step_func()
                self.steps_completed.append(step_name)
                logger.info(f"✓ {step_name} completed")
            # ValueError covers LSFFAdequacyError and pandas parser errors
            except (ValueError, OSError, yaml.YAMLError) as e:
                self.steps_failed.append(step_name)
                logger.error(f"✗ {step_name} failed: {e}")
                break

        duration = datetime.now() - start_time
        logger.info(f"Completed steps: {len(self.steps_completed)}/{len(steps)} in {duration}")

        success = len(self.steps_failed) == 0
        if success:
            logger.info(f"✓ Summary written to {self.output_path}")
        return success


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compute pre and post LSFF nutrient adequacy summaries",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("--consumption", type=Path, required=True,
                        help="Household consumption table")
    parser.add_argument("--household-details", type=Path, required=True,
                        help="Household details table")
    parser.add_argument("--nct", type=Path, required=True,
                        help="Nutrient composition table (long or wide form)")
    parser.add_argument("--thresholds", type=Path, required=True,
                        help="Intake thresholds table (nutrient, ear, ul)")
    parser.add_argument("--fortifiable-foods", type=Path, required=True,
                        help="Fortifiable food items table")
    parser.add_argument("--fortification-levels", type=Path, required=True,
                        help="Fortification levels per vehicle, year and nutrient")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG,
                        help=f"Run configuration (default: {DEFAULT_CONFIG})")
    parser.add_argument("--output", type=Path, default=Path("lsff_adequacy_summary.csv"),
                        help="Output file (.csv, .xlsx or .parquet)")
    parser.add_argument("--log-file", type=Path, help="Save log to file")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")

    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level, log_file=args.log_file)

    runner = PipelineRunner(
        inputs={
            'consumption': args.consumption,
            'household_details': args.household_details,
            'nct': args.nct,
            'thresholds': args.thresholds,
            'fortifiable_foods': args.fortifiable_foods,
            'fortification_levels': args.fortification_levels,
        },
        config_path=args.config,
        output_path=args.output,
    )

    return 0 if runner.run() else 1


if __name__ == "__main__":
    sys.exit(main())
