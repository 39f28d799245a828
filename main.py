#!/usr/bin/env python3
"""
Balanced Grouping - Parallel Simulated Annealing Divider

Main entry point for dividing a population into balanced groups.
Reads a CSV population (or generates a sample one), runs the parallel
annealing search and exports the assignment, a per-group summary and a plot.
"""

import sys
import argparse
import random
import time
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from grouping.config_loader import (
    ConfigurationError,
    load_config,
    validate_config,
    print_config_summary,
    resolve_random_seed,
    divide_config_from_config,
    column_config_from_config,
    get_output_config,
    get_history_config,
)
from grouping.data_models import attribute_order
from grouping.divider import run_division
from grouping.group_metrics import calculate_detailed_statistics, print_division_report
from grouping.history import HistoryManager, HistoryRecord
from grouping.io_utils import load_population_csv, save_groups_csv, save_group_summary_csv
from grouping.sample_data import sample_population
from grouping.validation import validate_constraints


def load_population(config, sample_size=None, seed=None):
    """Population from the configured CSV, or a synthetic one when sample_size is given"""
    if sample_size:
        print(f"Generating sample population of {sample_size} individuals...")
        return sample_population(sample_size, seed=seed), []

    input_config = config.get("input") or {}
    input_path = input_config.get("path")
    if not input_path:
        raise ConfigurationError("No input.path configured (use --sample N for a synthetic population)")

    columns = column_config_from_config(config)
    print(f"Loading population from {input_path}...")
    population = load_population_csv(input_path, columns)
    return population, list(columns.extra)


def run_basic_division(config_path="config.yaml", show_summary=True, output_name=None,
                       save_plots=True, sample_size=None, num_groups=None,
                       max_iterations=None, seed=None, record_history=True):
    """Run one division and export results"""
    if show_summary:
        print("=" * 60)
        print("BALANCED GROUPING")
        print("=" * 60)
        print_config_summary(config_path)

    config = load_config(config_path)
    issues = validate_config(config)
    if issues:
        raise ConfigurationError("; ".join(issues))

    division = config.setdefault("division", {})
    if num_groups is not None:
        division["num_groups"] = num_groups
    if max_iterations is not None:
        division["max_iterations"] = max_iterations
    if seed is not None:
        division["random_seed"] = seed
    division["random_seed"] = resolve_random_seed(division.get("random_seed", 0))

    population, extra_fields = load_population(config, sample_size, division["random_seed"])
    # adaptive preset depends on the population size
    divide_config = divide_config_from_config(config, population_size=len(population))

    print(f"\nDividing {len(population)} individuals into {divide_config.num_groups} groups...")
    start_time = time.time()
    result = run_division(population, divide_config, verbose=True)
    elapsed_time = time.time() - start_time
    print(f"Division completed in {elapsed_time:.3f} seconds")

    for note in result.notes:
        print(f"  Note: {note}")

    groups = result.groups
    validation = validate_constraints(groups, divide_config.parameters)
    statistics = calculate_detailed_statistics(groups)

    output_config = get_output_config(config)
    output_dir = Path(output_config["directory"])
    if output_name is None:
        timestamp = int(time.time())
        output_name = f"division_{timestamp}"

    attributes = attribute_order(population)
    groups_path = None

    print(f"\nExporting division as '{output_name}.csv'...")
    try:
        groups_path = save_groups_csv(
            groups, output_dir / f"{output_name}.csv", attributes, extra_fields,
            column_config_from_config(config), overwrite=output_config["overwrite"],
        )
        print(f"  ✓ CSV: {groups_path}")
    except (OSError, ValueError) as e:
        print(f"  ✗ CSV: Failed - {e}")

    if output_config["summary"]:
        try:
            summary_path = save_group_summary_csv(
                groups, output_dir / f"{output_name}_summary.csv", attributes,
                overwrite=output_config["overwrite"],
            )
            print(f"  ✓ Summary: {summary_path}")
        except (OSError, ValueError) as e:
            print(f"  ✗ Summary: Failed - {e}")

    if save_plots and output_config["plot"] and groups:
        print(f"\nGenerating visualization plot...")
        try:
            # Set matplotlib to non-interactive backend to avoid display issues
            import matplotlib
            matplotlib.use('Agg')
            import matplotlib.pyplot as plt
            from grouping.visualization import GroupVisualizer

            output_dir.mkdir(parents=True, exist_ok=True)
            plot_path = output_dir / f"{output_name}_plot.png"
            fig = GroupVisualizer(groups, attributes).plot_overview(
                validation, save_path=str(plot_path), show=False
            )
            plt.close(fig)
            print(f"  ✓ Plot: {plot_path}")
        except Exception as e:
            print(f"  ✗ Plot: Failed - {e}")
            import traceback
            traceback.print_exc()

    print("\n" + print_division_report(groups, validation, statistics,
                                       divide_config.parameters.max_subject_score_diff))

    history_config = get_history_config(config)
    if record_history and history_config["enabled"]:
        input_path = "sample" if sample_size else (config.get("input") or {}).get("path", "")
        HistoryManager(history_config["path"]).add(HistoryRecord.create(
            input_path=input_path,
            output_path=str(groups_path) if groups_path else None,
            num_groups=divide_config.num_groups,
            population_size=len(population),
            parameters=divide_config.parameters,
        ))

    return result, validation


def run_multiple_random_trials(num_trials=5, config_path="config.yaml", sample_size=None,
                               num_groups=None, max_iterations=None):
    """Run multiple trials with different random seeds for comparison"""
    print("=" * 60)
    print(f"RUNNING {num_trials} RANDOM TRIALS")
    print("=" * 60)

    results = []

    for trial in range(num_trials):
        print(f"\n--- Trial {trial + 1}/{num_trials} ---")

        random_seed = random.randint(1, 1000000)
        print(f"Using random seed: {random_seed}")

        trial_output_name = f"division_trial_{trial + 1}_seed_{random_seed}"
        result, validation = run_basic_division(
            config_path, show_summary=False, output_name=trial_output_name,
            sample_size=sample_size, num_groups=num_groups,
            max_iterations=max_iterations, seed=random_seed,
        )

        results.append({
            'trial': trial + 1,
            'seed': random_seed,
            'cost': result.cost if result.cost is not None else 0.0,
            'score_diff': validation.max_score_diff,
            'ratio_diff': validation.max_gender_ratio_diff,
            'all_met': validation.all_met,
        })

    print("\n" + "=" * 60)
    print("TRIAL SUMMARY")
    print("=" * 60)
    print("Trial | Seed      | Cost         | Score diff | Ratio diff | Met")
    print("------|-----------|--------------|------------|------------|----")

    for r in results:
        print(f"{r['trial']:5} | {r['seed']:9} | {r['cost']:12.4f} | {r['score_diff']:10.3f} | "
              f"{r['ratio_diff']:10.3f} | {'yes' if r['all_met'] else 'no'}")

    if results:
        score_diffs = [r['score_diff'] for r in results]
        avg_diff = sum(score_diffs) / len(score_diffs)
        print(f"\nScore Spread Statistics:")
        print(f"  Average: {avg_diff:.3f}")
        print(f"  Range: {min(score_diffs):.3f} - {max(score_diffs):.3f}")
        print(f"  Constraints met: {sum(r['all_met'] for r in results)}/{len(results)}")


def show_history(config_path="config.yaml"):
    """Print recorded runs, newest first"""
    config = load_config(config_path)
    manager = HistoryManager(get_history_config(config)["path"])
    records = manager.load()

    print("=" * 60)
    print(f"RUN HISTORY ({len(records)} records)")
    print("=" * 60)
    for record in records:
        print(f"{record.timestamp} | {record.num_groups:3} groups | "
              f"{record.population_size:6} individuals | {record.input_path} -> {record.output_path}")


def clear_history(config_path="config.yaml"):
    config = load_config(config_path)
    HistoryManager(get_history_config(config)["path"]).clear()
    print("History cleared.")


def main():
    """Main entry point with command-line argument parsing"""
    parser = argparse.ArgumentParser(
        description="Balanced Grouping - Parallel Simulated Annealing Divider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py                               # Divide the configured CSV (CSV + summary + plot)
  python3 main.py --sample 300 --groups 6       # Divide a synthetic population
  python3 main.py --groups 8 --iterations 200000
  python3 main.py --output-name "grade10"       # Custom filenames (grade10.csv, grade10_summary.csv, ...)
  python3 main.py --trials 5 --sample 200       # Multiple random trials
  python3 main.py --config custom.yaml          # Custom config file
  python3 main.py --history                     # List previous runs
        """
    )

    parser.add_argument(
        '--config', '-c',
        default='config.yaml',
        help='Configuration file path (default: config.yaml)'
    )

    parser.add_argument(
        '--sample', '-s',
        type=int,
        metavar='N',
        help='Use a synthetic population of N individuals instead of the input CSV'
    )

    parser.add_argument(
        '--groups', '-g',
        type=int,
        metavar='K',
        help='Number of groups (overrides config)'
    )

    parser.add_argument(
        '--iterations', '-i',
        type=int,
        metavar='N',
        help='Iteration budget per annealing instance (overrides config)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        help='Random seed (overrides config)'
    )

    parser.add_argument(
        '--output-name', '-n',
        type=str,
        metavar='NAME',
        help='Base name for output files (default: division_TIMESTAMP)'
    )

    parser.add_argument(
        '--no-plot',
        action='store_true',
        help='Skip plot generation'
    )

    parser.add_argument(
        '--trials', '-t',
        type=int,
        metavar='N',
        help='Run N random trials for comparison'
    )

    parser.add_argument(
        '--history',
        action='store_true',
        help='Show previous runs'
    )

    parser.add_argument(
        '--clear-history',
        action='store_true',
        help='Delete the run history'
    )

    args = parser.parse_args()

    try:
        if args.history:
            show_history(args.config)
        elif args.clear_history:
            clear_history(args.config)
        elif args.trials:
            run_multiple_random_trials(args.trials, args.config, args.sample,
                                       args.groups, args.iterations)
        else:
            run_basic_division(args.config, output_name=args.output_name,
                               save_plots=not args.no_plot, sample_size=args.sample,
                               num_groups=args.groups, max_iterations=args.iterations,
                               seed=args.seed)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
