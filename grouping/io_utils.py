"""
CSV I/O for populations and division results.

Handles population loading through a column mapping and export of the
per-member assignment and per-group summary files.
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .data_models import Category, Group, Individual

DEFAULT_PRIMARY_VALUES = ["M", "male", "男"]
DEFAULT_SECONDARY_VALUES = ["F", "female", "女"]


@dataclass
class ColumnConfig:
    """
    Mapping from CSV header names to individual fields.

    Attributes:
        name: Column holding the display name (required)
        category: Column holding the category tag (required)
        id: Optional identifier column
        total_score: Optional aggregate column (otherwise the sum of attributes)
        attributes: Attribute columns, in order (empty = every other column)
        extra: Passthrough columns kept for export
        primary_values: Category values read as primary (case-insensitive)
        secondary_values: Category values read as secondary (case-insensitive)
    """
    name: str = "name"
    category: str = "gender"
    id: Optional[str] = None
    total_score: Optional[str] = None
    attributes: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)
    primary_values: List[str] = field(default_factory=lambda: list(DEFAULT_PRIMARY_VALUES))
    secondary_values: List[str] = field(default_factory=lambda: list(DEFAULT_SECONDARY_VALUES))

    def __post_init__(self):
        """Validate column mapping."""
        if not self.name:
            raise ValueError("ColumnConfig requires a name column")
        if not self.category:
            raise ValueError("ColumnConfig requires a category column")
        overlap = ({v.strip().lower() for v in self.primary_values}
                   & {v.strip().lower() for v in self.secondary_values})
        if overlap:
            raise ValueError(f"Category values used for both categories: {sorted(overlap)}")

    def parse_category(self, value: str) -> Optional[Category]:
        """Category for a cell value, None if unrecognized."""
        value = value.strip().lower()
        if value in (v.lower() for v in self.primary_values):
            return Category.PRIMARY
        if value in (v.lower() for v in self.secondary_values):
            return Category.SECONDARY
        return None

    def category_label(self, category: Category) -> str:
        """Label written on export (first configured value)."""
        values = self.primary_values if category is Category.PRIMARY else self.secondary_values
        return values[0] if values else category.value

    def reserved_columns(self) -> set:
        return {c for c in (self.name, self.category, self.id, self.total_score) if c} | set(self.extra)

    def resolve_attributes(self, fieldnames: Sequence[str]) -> List[str]:
        """Configured attribute columns, or every non-reserved column when none are configured."""
        if self.attributes:
            return list(self.attributes)
        reserved = self.reserved_columns()
        return [name for name in fieldnames if name not in reserved]


def _parse_score(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        return float(value.strip())
    except ValueError:
        return 0.0


def load_population_csv(csv_path: Union[str, Path],
                        columns: Optional[ColumnConfig] = None) -> List[Individual]:
    """
    Load a population CSV file.

    CSV format (header names are configurable through ColumnConfig):
        name,gender,math,english,...
        Alice,F,95,88,...

    Rows with an empty name or an unrecognized category are skipped.
    Missing or non-numeric scores read as 0.0.

    Args:
        csv_path: Path to CSV file
        columns: Column mapping (defaults to ColumnConfig())

    Returns:
        List of Individual in file order

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If required columns are missing or no individual could be read
    """
    csv_path = Path(csv_path)
    if columns is None:
        columns = ColumnConfig()

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    population = []
    with open(csv_path, 'r', encoding='utf-8-sig', newline='') as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or []

        attributes = columns.resolve_attributes(fieldnames)
        required = [columns.name, columns.category] + attributes + list(columns.extra)
        if columns.id:
            required.append(columns.id)
        if columns.total_score:
            required.append(columns.total_score)
        missing = [col for col in required if col not in fieldnames]
        if missing:
            raise ValueError(f"Invalid CSV format in {csv_path}. Missing columns: {', '.join(missing)}")

        for row in reader:
            name = (row.get(columns.name) or "").strip()
            if not name:
                continue
            category = columns.parse_category(row.get(columns.category) or "")
            if category is None:
                continue

            scores = {attr: _parse_score(row.get(attr)) for attr in attributes}
            total = _parse_score(row.get(columns.total_score)) if columns.total_score else None
            individual_id = None
            if columns.id:
                individual_id = (row.get(columns.id) or "").strip() or None

            population.append(Individual(
                name=name,
                category=category,
                scores=scores,
                total_score=total,
                id=individual_id,
                extra_fields={col: (row.get(col) or "").strip() for col in columns.extra},
            ))

    if not population:
        raise ValueError(f"No individuals could be read from {csv_path}")

    return population


def has_real_ids(groups: Sequence[Group]) -> bool:
    return any(member.id for group in groups for member in group.members)


def save_groups_csv(groups: Sequence[Group],
                    output_path: Union[str, Path],
                    attribute_names: Sequence[str],
                    extra_field_names: Sequence[str] = (),
                    columns: Optional[ColumnConfig] = None,
                    overwrite: bool = False) -> Path:
    """
    Save one row per member with its 1-based group number.

    The id column is only written when at least one member has an id.

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)
    if columns is None:
        columns = ColumnConfig()

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with_ids = has_real_ids(groups)

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        header = ['group']
        if with_ids:
            header.append('id')
        header += ['name', 'category', *extra_field_names, *attribute_names, 'total']
        writer.writerow(header)

        for group in groups:
            for member in group.members:
                row = [group.id + 1]
                if with_ids:
                    row.append(member.id or "")
                row += [member.name, columns.category_label(member.category)]
                row += [member.extra_fields.get(name, "") for name in extra_field_names]
                row += [f"{member.score(attr):.1f}" for attr in attribute_names]
                row.append(f"{member.total_score:.1f}")
                writer.writerow(row)

    return output_path


def save_group_summary_csv(groups: Sequence[Group],
                           output_path: Union[str, Path],
                           attribute_names: Sequence[str],
                           overwrite: bool = False) -> Path:
    """
    Save one summary row per group: size, category counts and ratio,
    attribute averages and the average total.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['group', 'size', 'primary', 'secondary', 'primary_ratio',
                         *[f"{attr}_avg" for attr in attribute_names], 'total_avg'])
        for group in groups:
            summary = group.to_dict()
            writer.writerow([
                summary['group'],
                summary['size'],
                summary['primary'],
                summary['secondary'],
                f"{summary['category_ratio']:.3f}",
                *[f"{group.avg_attribute_score(attr):.2f}" for attr in attribute_names],
                f"{summary['avg_total']:.2f}",
            ])

    return output_path
