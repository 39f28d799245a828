"""
Configuration Loading System

Loads YAML configuration files and converts them to the data structures
used by the divider (DivideConfig, OptimizationParameters, ColumnConfig).
"""

import time
import yaml
from typing import Dict, List, Any, Optional
from pathlib import Path

from .io_utils import ColumnConfig
from .parameters import DivideConfig, OptimizationParameters, PRESETS, EXECUTORS


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if not config:
        raise ConfigurationError(f"Configuration file is empty: {config_path}")
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config


def resolve_random_seed(random_seed: Any) -> int:
    """
    Turn a configured seed into an integer.

    None or "random" draws a fresh seed from the clock and prints it so the
    run can be reproduced.
    """
    if random_seed is None or random_seed == "random":
        random_seed = int(time.time() * 1000000) % 2147483647
        print(f"Using random seed: {random_seed}")
        return random_seed
    if isinstance(random_seed, str):
        if random_seed.isdigit():
            return int(random_seed)
        raise ConfigurationError(f"Invalid random_seed: {random_seed}")
    return int(random_seed)


def _preset_and_overrides(config: Dict[str, Any]):
    optimization_config = dict(config.get("optimization") or {})
    preset = optimization_config.pop("preset", "default")
    return preset, optimization_config


def parameters_from_config(config: Dict[str, Any],
                           population_size: int = 0) -> OptimizationParameters:
    """
    Build OptimizationParameters from the "optimization" section.

    The section names a preset and may override any parameter field:

        optimization:
          preset: strict
          cooling_rate: 0.9998

    Args:
        config: Loaded configuration
        population_size: Used by the adaptive preset

    Raises:
        ConfigurationError: On an unknown preset or parameter name
    """
    preset, overrides = _preset_and_overrides(config)
    try:
        params = OptimizationParameters.from_preset(preset, population_size)
        return params.with_overrides(**overrides)
    except ValueError as e:
        raise ConfigurationError(str(e))


def divide_config_from_config(config: Dict[str, Any],
                              population_size: int = 0) -> DivideConfig:
    """Create a DivideConfig from the "division" and "optimization" sections"""
    division_config = config.get("division") or {}

    random_seed = division_config.get("random_seed", 0)
    random_seed = resolve_random_seed(random_seed)

    try:
        return DivideConfig(
            num_groups=int(division_config.get("num_groups", 3)),
            max_iterations=int(division_config.get("max_iterations", 500_000)),
            parameters=parameters_from_config(config, population_size),
            random_seed=random_seed,
            executor=division_config.get("executor", "process"),
            enforce_iteration_floor=bool(division_config.get("enforce_iteration_floor", False)),
        )
    except ValueError as e:
        raise ConfigurationError(str(e))


def column_config_from_config(config: Dict[str, Any]) -> ColumnConfig:
    """Create the CSV column mapping from the "input" section"""
    input_config = config.get("input") or {}
    columns = input_config.get("columns") or {}
    category_values = input_config.get("category_values") or {}

    kwargs = {}
    for key in ("name", "category", "id", "total_score"):
        if key in columns:
            kwargs[key] = columns[key]
    if "attributes" in columns:
        kwargs["attributes"] = list(columns["attributes"] or [])
    if "extra" in columns:
        kwargs["extra"] = list(columns["extra"] or [])
    if "primary" in category_values:
        kwargs["primary_values"] = [str(v) for v in category_values["primary"]]
    if "secondary" in category_values:
        kwargs["secondary_values"] = [str(v) for v in category_values["secondary"]]

    try:
        return ColumnConfig(**kwargs)
    except ValueError as e:
        raise ConfigurationError(str(e))


def get_output_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get output configuration with defaults filled in"""
    output_config = config.get("output") or {}
    return {
        "directory": output_config.get("directory", "output"),
        "overwrite": output_config.get("overwrite", False),
        "plot": output_config.get("plot", True),
        "summary": output_config.get("summary", True),
    }


def get_history_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get history configuration with defaults filled in"""
    history_config = config.get("history") or {}
    return {
        "enabled": history_config.get("enabled", True),
        "path": history_config.get("path", "output/history.json"),
    }


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    required_sections = ["division"]
    for section in required_sections:
        if section not in config:
            issues.append(f"Missing required section: {section}")

    division_config = config.get("division") or {}
    num_groups = division_config.get("num_groups", 3)
    if not isinstance(num_groups, int) or num_groups <= 0:
        issues.append("division.num_groups must be a positive integer")

    max_iterations = division_config.get("max_iterations", 500_000)
    if not isinstance(max_iterations, int) or max_iterations <= 0:
        issues.append("division.max_iterations must be a positive integer")

    executor = division_config.get("executor", "process")
    if executor not in EXECUTORS:
        issues.append(f"Unknown executor: {executor}. Must be one of {', '.join(EXECUTORS)}")

    random_seed = division_config.get("random_seed", 0)
    if not (random_seed is None or random_seed == "random" or isinstance(random_seed, int)
            or (isinstance(random_seed, str) and random_seed.isdigit())):
        issues.append(f"Invalid random_seed: {random_seed}")

    preset, overrides = _preset_and_overrides(config)
    if preset not in PRESETS:
        issues.append(f"Unknown optimization preset: {preset}")

    known = set(OptimizationParameters.field_names())
    for name in sorted(set(overrides) - known):
        issues.append(f"Unknown optimization parameter: {name}")

    cooling_rate = overrides.get("cooling_rate")
    if cooling_rate is not None and not 0 < cooling_rate < 1:
        issues.append("optimization.cooling_rate must be between 0 and 1 (exclusive)")

    initial_temperature = overrides.get("initial_temperature")
    if initial_temperature is not None and initial_temperature <= 0:
        issues.append("optimization.initial_temperature must be positive")

    for name in ("same_category_swap_probability", "reheat_temperature_factor"):
        value = overrides.get(name)
        if value is not None and not 0 <= value <= 1:
            issues.append(f"optimization.{name} must be between 0 and 1")

    for name in ("max_score_diff", "max_subject_score_diff", "max_gender_ratio_diff",
                 "max_class_size_diff"):
        value = overrides.get(name)
        if value is not None and value < 0:
            issues.append(f"optimization.{name} must not be negative")

    instances = overrides.get("num_parallel_instances")
    if instances is not None and (not isinstance(instances, int) or instances <= 0):
        issues.append("optimization.num_parallel_instances must be a positive integer or null")

    input_config = config.get("input") or {}
    columns = input_config.get("columns") or {}
    for key in ("name", "category"):
        if key in columns and not columns[key]:
            issues.append(f"input.columns.{key} must not be empty")

    category_values = input_config.get("category_values") or {}
    primary = {str(v).strip().lower() for v in category_values.get("primary", [])}
    secondary = {str(v).strip().lower() for v in category_values.get("secondary", [])}
    if primary & secondary:
        issues.append(f"Category values used for both categories: {', '.join(sorted(primary & secondary))}")

    return issues


def print_config_summary(config_path: str = "config.yaml"):
    """Print a summary of the configuration"""
    try:
        config = load_config(config_path)

        print("=" * 50)
        print("CONFIGURATION SUMMARY")
        print("=" * 50)

        input_config = config.get("input") or {}
        print(f"Input: {input_config.get('path', 'N/A')}")

        division_config = config.get("division") or {}
        print(f"Groups: {division_config.get('num_groups', 3)}")
        print(f"Max iterations: {division_config.get('max_iterations', 500_000)}")
        print(f"Executor: {division_config.get('executor', 'process')}")
        print(f"Random seed: {division_config.get('random_seed', 0)}")

        preset, overrides = _preset_and_overrides(config)
        print(f"\nOptimization preset: {preset}")
        for name, value in overrides.items():
            print(f"  {name}: {value}")

        output_config = get_output_config(config)
        print(f"\nOutput directory: {output_config['directory']}")

        issues = validate_config(config)
        if issues:
            print(f"\nValidation Issues ({len(issues)}):")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("\nConfiguration is valid ✓")

        print("=" * 50)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
