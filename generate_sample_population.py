#!/usr/bin/env python3
"""
Write a synthetic population CSV for trying out the divider.
"""

import sys
import argparse
import csv
from pathlib import Path

sys.path.append(str(Path(__file__).parent))

from grouping.sample_data import DEFAULT_ATTRIBUTES, sample_population


def write_population_csv(population, output_path, attributes):
    """Write name, id, gender and one column per attribute"""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['id', 'name', 'gender', *attributes])
        for individual in population:
            writer.writerow([
                individual.id,
                individual.name,
                'M' if individual.is_primary else 'F',
                *[f"{individual.score(attr):.1f}" for attr in attributes],
            ])
    return output_path


def main():
    parser = argparse.ArgumentParser(description="Generate a sample population CSV")
    parser.add_argument('count', type=int, nargs='?', default=300, help='Number of individuals (default: 300)')
    parser.add_argument('--output', '-o', default='data/students.csv', help='Output CSV path')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--attributes', nargs='+', default=list(DEFAULT_ATTRIBUTES),
                        help='Attribute column names')
    args = parser.parse_args()

    population = sample_population(args.count, args.attributes, seed=args.seed)
    path = write_population_csv(population, args.output, args.attributes)

    primary = sum(1 for individual in population if individual.is_primary)
    print(f"Wrote {len(population)} individuals ({primary} primary, "
          f"{len(population) - primary} secondary) to {path}")


if __name__ == "__main__":
    main()
