"""
Run history

Keeps a JSON file of recent divisions (newest first, bounded length).
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .parameters import OptimizationParameters

MAX_HISTORY_RECORDS = 50
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class HistoryRecord:
    """One finished division run"""
    timestamp: str
    input_path: str
    output_path: Optional[str]
    num_groups: int
    population_size: int
    format: str = "csv"
    parameters: Dict[str, Any] = field(default_factory=lambda: OptimizationParameters().to_dict())

    @classmethod
    def create(cls,
               input_path: str,
               output_path: Optional[str],
               num_groups: int,
               population_size: int,
               parameters: OptimizationParameters,
               format: str = "csv") -> "HistoryRecord":
        """Record stamped with the current local time"""
        return cls(
            timestamp=datetime.now().strftime(TIMESTAMP_FORMAT),
            input_path=str(input_path),
            output_path=str(output_path) if output_path is not None else None,
            num_groups=num_groups,
            population_size=population_size,
            format=format,
            parameters=parameters.to_dict(),
        )

    def optimization_parameters(self) -> OptimizationParameters:
        return OptimizationParameters.from_dict(self.parameters)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryRecord":
        return cls(
            timestamp=data["timestamp"],
            input_path=data["input_path"],
            output_path=data.get("output_path"),
            num_groups=data["num_groups"],
            population_size=data["population_size"],
            format=data.get("format", "csv"),
            parameters=data.get("parameters") or OptimizationParameters().to_dict(),
        )


class HistoryManager:
    """Load, append, delete and clear history records in a JSON file"""

    def __init__(self, history_path: Union[str, Path] = "output/history.json"):
        self.history_path = Path(history_path)

    def load(self) -> List[HistoryRecord]:
        """
        Read all records.

        A missing or empty file yields no records. A file that cannot be
        parsed is removed and also yields no records.
        """
        if not self.history_path.exists():
            return []

        content = self.history_path.read_text(encoding='utf-8')
        if not content.strip():
            return []

        try:
            return [HistoryRecord.from_dict(item) for item in json.loads(content)]
        except (json.JSONDecodeError, KeyError, TypeError):
            print(f"Warning: discarding unreadable history file {self.history_path}")
            self.history_path.unlink()
            return []

    def _save(self, records: List[HistoryRecord]):
        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, 'w', encoding='utf-8') as f:
            json.dump([asdict(r) for r in records], f, indent=2, ensure_ascii=False)

    def add(self, record: HistoryRecord):
        """Insert a record at the front, keeping at most MAX_HISTORY_RECORDS"""
        records = self.load()
        records.insert(0, record)
        self._save(records[:MAX_HISTORY_RECORDS])

    def delete(self, timestamp: str):
        records = [r for r in self.load() if r.timestamp != timestamp]
        self._save(records)

    def clear(self):
        if self.history_path.exists():
            self.history_path.unlink()
