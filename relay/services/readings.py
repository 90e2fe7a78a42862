"""Latest value per monitored field."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Union

ReadingValue = Union[float, str, None]


@dataclass
class ReadingStore:
    """One slot per field. Writes overwrite unconditionally; ``None`` means unset."""

    temperature: Optional[float] = None
    humidity: Optional[float] = None
    darkness: Optional[float] = None
    fan_status: Optional[str] = None
    light_status: Optional[str] = None
    fan_usage_percentage: Optional[float] = None
    light_usage_percentage: Optional[float] = None

    def get(self, field: str) -> ReadingValue:
        return getattr(self, field)

    def set(self, field: str, value: ReadingValue) -> None:
        if field not in self.__dataclass_fields__:
            raise KeyError(field)
        setattr(self, field, value)

    def snapshot(self) -> Dict[str, ReadingValue]:
        return asdict(self)
