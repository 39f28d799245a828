#!/usr/bin/env python3
"""
Configuration Validation Tool

Validates YAML configuration files for the balanced grouping divider
and provides detailed feedback about parameter values and potential issues.
"""

import sys
import argparse
from pathlib import Path
from typing import Dict, Any

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from grouping.config_loader import (
    load_config,
    validate_config,
    ConfigurationError,
    parameters_from_config,
    column_config_from_config,
)
from grouping.io_utils import load_population_csv


class ConfigValidator:
    """Advanced configuration validator with detailed feedback"""

    def __init__(self):
        self.warnings = []
        self.errors = []
        self.recommendations = []

    def validate_comprehensive(self, config_path: str, check_input: bool = False) -> Dict[str, Any]:
        """Perform comprehensive validation with detailed feedback"""
        try:
            config = load_config(config_path)
        except ConfigurationError as e:
            return {
                'valid': False,
                'errors': [f"Failed to load configuration: {e}"],
                'warnings': [],
                'recommendations': [],
                'summary': {}
            }

        self.warnings = []
        self.errors = []
        self.recommendations = []

        # Basic validation
        self.errors.extend(validate_config(config))

        # Advanced validation
        self._validate_division(config.get('division') or {})
        self._validate_optimization(config)
        self._validate_output(config.get('output') or {})

        if check_input:
            self._validate_input(config)

        summary = self._generate_summary(config)

        return {
            'valid': len(self.errors) == 0,
            'errors': self.errors,
            'warnings': self.warnings,
            'recommendations': self.recommendations,
            'summary': summary
        }

    def _validate_division(self, division_config: Dict[str, Any]):
        """Validate division configuration"""
        if not division_config:
            return

        num_groups = division_config.get('num_groups', 3)
        max_iterations = division_config.get('max_iterations', 500_000)
        random_seed = division_config.get('random_seed', 0)

        if isinstance(num_groups, int) and num_groups == 1:
            self.warnings.append("num_groups is 1: everyone lands in a single group and no optimization runs")
        elif isinstance(num_groups, int) and num_groups > 50:
            self.warnings.append(f"Many groups ({num_groups}) make small groups hard to balance")

        if isinstance(max_iterations, int) and max_iterations > 0:
            if max_iterations < 10_000:
                self.warnings.append(f"Low max_iterations ({max_iterations}) may reduce balance quality")
            elif max_iterations > 5_000_000:
                self.warnings.append(f"High max_iterations ({max_iterations}) may take a long time")

        if isinstance(random_seed, int) and (random_seed < 0 or random_seed > 2**31):
            self.warnings.append(f"random_seed ({random_seed}) outside typical range")

        if division_config.get('executor') == 'thread':
            self.recommendations.append("The thread executor shares one interpreter; "
                                        "use 'process' for real parallel speedup")

    def _validate_optimization(self, config: Dict[str, Any]):
        """Validate optimization parameters after applying the preset"""
        try:
            params = parameters_from_config(config)
        except ConfigurationError:
            # already reported by validate_config
            return

        if params.cooling_rate < 0.999:
            self.warnings.append(f"Fast cooling_rate ({params.cooling_rate}) may freeze the search early")

        if params.max_gender_ratio_diff > 0.5:
            self.warnings.append(f"max_gender_ratio_diff ({params.max_gender_ratio_diff}) barely constrains category balance")

        if params.penalty_power < 2:
            self.warnings.append(f"Low penalty_power ({params.penalty_power}) makes threshold violations cheap")

        if params.num_parallel_instances is not None and params.num_parallel_instances > 32:
            self.warnings.append(f"Many parallel instances ({params.num_parallel_instances}) may oversubscribe the CPU")

        if params.reheat_after_iterations <= 0:
            self.errors.append("reheat_after_iterations must be positive")

    def _validate_output(self, output_config: Dict[str, Any]):
        """Validate output configuration"""
        if not output_config:
            return

        directory = output_config.get('directory')
        if directory is not None and not str(directory).strip():
            self.errors.append("output.directory must not be empty")

        if output_config.get('overwrite'):
            self.recommendations.append("overwrite is enabled: existing result files will be replaced")

    def _validate_input(self, config: Dict[str, Any]):
        """Try to read the configured population"""
        input_config = config.get('input') or {}
        input_path = input_config.get('path')
        if not input_path:
            self.errors.append("Missing input.path")
            return

        try:
            population = load_population_csv(input_path, column_config_from_config(config))
        except (OSError, ValueError, ConfigurationError) as e:
            self.errors.append(f"Could not read population: {e}")
            return

        num_groups = (config.get('division') or {}).get('num_groups', 3)
        if isinstance(num_groups, int) and len(population) < num_groups:
            self.warnings.append(f"Population ({len(population)}) smaller than num_groups ({num_groups})")
        elif isinstance(num_groups, int) and num_groups > 0 and len(population) / num_groups < 5:
            self.recommendations.append("Fewer than 5 individuals per group; averages will be noisy")

        primary = sum(1 for individual in population if individual.is_primary)
        if primary == 0 or primary == len(population):
            self.warnings.append("Population contains only one category")

    def _generate_summary(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Generate configuration summary"""
        summary = {}

        input_config = config.get('input') or {}
        if input_config:
            columns = input_config.get('columns') or {}
            summary['input'] = {
                'path': input_config.get('path', 'N/A'),
                'attributes': columns.get('attributes') or 'all other columns',
            }

        division_config = config.get('division') or {}
        if division_config:
            random_seed = division_config.get('random_seed', 0)
            summary['division'] = {
                'num_groups': division_config.get('num_groups', 3),
                'max_iterations': division_config.get('max_iterations', 500_000),
                'executor': division_config.get('executor', 'process'),
                'reproducible': random_seed is not None and random_seed != "random"
            }

        optimization_config = config.get('optimization') or {}
        summary['optimization'] = {
            'preset': optimization_config.get('preset', 'default'),
            'overrides': len([k for k in optimization_config if k != 'preset']),
        }

        return summary


def main():
    """Main validation function"""
    parser = argparse.ArgumentParser(
        description="Validate YAML configuration files for the balanced grouping divider",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        default='config.yaml',
        help='Configuration file to validate (default: config.yaml)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed validation information'
    )

    parser.add_argument(
        '--warnings-only', '-w',
        action='store_true',
        help='Show only warnings and errors (no recommendations)'
    )

    parser.add_argument(
        '--check-input',
        action='store_true',
        help='Also load the configured population CSV'
    )

    args = parser.parse_args()

    validator = ConfigValidator()
    result = validator.validate_comprehensive(args.config_file, check_input=args.check_input)

    print("=" * 60)
    print("CONFIGURATION VALIDATION REPORT")
    print("=" * 60)
    print(f"File: {args.config_file}")
    print(f"Status: {'✅ VALID' if result['valid'] else '❌ INVALID'}")
    print()

    if result['errors']:
        print("🚨 ERRORS:")
        for error in result['errors']:
            print(f"  • {error}")
        print()

    if result['warnings']:
        print("⚠️  WARNINGS:")
        for warning in result['warnings']:
            print(f"  • {warning}")
        print()

    if result['recommendations'] and not args.warnings_only:
        print("💡 RECOMMENDATIONS:")
        for rec in result['recommendations']:
            print(f"  • {rec}")
        print()

    if result['summary'] and args.verbose:
        print("📊 SUMMARY:")
        for section, data in result['summary'].items():
            print(f"  {section.title()}:")
            for key, value in data.items():
                print(f"    {key}: {value}")
        print()

    if not args.verbose:
        summary = result['summary']
        if 'division' in summary:
            division_info = summary['division']
            print(f"Groups: {division_info['num_groups']}, Iterations: {division_info['max_iterations']}, "
                  f"Preset: {summary['optimization']['preset']}")

    print("=" * 60)

    sys.exit(0 if result['valid'] else 1)


if __name__ == "__main__":
    main()
