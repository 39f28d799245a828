#!/usr/bin/env python3
"""
Test runner for the balanced grouping divider
"""

import unittest
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))


def run_all_tests():
    """Run all test modules"""
    loader = unittest.TestLoader()
    tests_dir = Path(__file__).parent / "tests"

    suite = loader.discover(str(tests_dir), pattern="test_*.py", top_level_dir=str(tests_dir))
    suite.addTests(loader.discover(str(tests_dir / "test_grouping"), pattern="test_*.py",
                                   top_level_dir=str(tests_dir / "test_grouping")))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


def run_integration_test():
    """Run a basic integration test"""
    print("\n" + "=" * 50)
    print("INTEGRATION TEST")
    print("=" * 50)

    try:
        from grouping.divider import run_division
        from grouping.parameters import DivideConfig, OptimizationParameters
        from grouping.sample_data import sample_population
        from grouping.validation import validate_constraints
        from grouping.group_metrics import print_division_report

        print("Generating sample population...")
        population = sample_population(120, seed=0)

        print("Running division...")
        params = OptimizationParameters()
        config = DivideConfig(num_groups=4, max_iterations=100_000, parameters=params, random_seed=0)
        result = run_division(population, config, verbose=True)

        validation = validate_constraints(result.groups, params)
        print(print_division_report(result.groups, validation))

        placed = sum(g.size for g in result.groups)
        print(f"Individuals placed: {placed}/{len(population)}")

        success = (
            placed == len(population) and
            len(result.groups) == 4 and
            validation.max_score_diff <= 2.0
        )

        if success:
            print("✓ Integration test PASSED")
        else:
            print("✗ Integration test FAILED")

        return success

    except Exception as e:
        print(f"✗ Integration test FAILED: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    print("Running Balanced Grouping Tests")
    print("=" * 60)

    print("Running unit tests...")
    unit_success = run_all_tests()

    integration_success = run_integration_test()

    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    print(f"Unit tests: {'PASSED' if unit_success else 'FAILED'}")
    print(f"Integration test: {'PASSED' if integration_success else 'FAILED'}")

    overall_success = unit_success and integration_success
    print(f"Overall: {'PASSED' if overall_success else 'FAILED'}")

    sys.exit(0 if overall_success else 1)
