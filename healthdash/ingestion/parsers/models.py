from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Optional, Union

DEFAULT_CATEGORY = "General"


@dataclass(frozen=True)
class ParsedLabResult:
    """One lab test recovered from a report's text runs.

    ``min_range == max_range == 0`` means no reference range was found.
    ``reference_range`` is only set by the named-match pass.
    """

    test_name: str
    value: Union[float, str]
    unit: str = ""
    min_range: float = 0
    max_range: float = 0
    reference_range: Optional[str] = None
    category: Optional[str] = None

    @property
    def has_range(self) -> bool:
        return not (self.min_range == 0 and self.max_range == 0)

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, float)

    def to_row(self) -> Dict:
        return asdict(self)
