"""
Structural assumptions of the block export layout.

Block discovery depends on a handful of layout conventions: which labels
mark the headers, how far down to search, where the first data row sits
when no In/Out sub-headers exist, and the fixed column offsets of each
field. They are collected here so one object can be swapped per source.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from config.settings import BLOCK_LAYOUT_CONFIG


@dataclass(frozen=True)
class BlockLayoutPolicy:
    """Labels, search windows and field offsets for the block layout."""
    day_anchor_label: str = BLOCK_LAYOUT_CONFIG["day_anchor_label"]
    attendance_date_label: str = BLOCK_LAYOUT_CONFIG["attendance_date_label"]
    tabling_date_label: str = BLOCK_LAYOUT_CONFIG["tabling_date_label"]
    name_label: str = BLOCK_LAYOUT_CONFIG["name_label"]
    user_id_label: str = BLOCK_LAYOUT_CONFIG["user_id_label"]
    department_label: str = BLOCK_LAYOUT_CONFIG["department_label"]
    sub_header_labels: List[str] = field(
        default_factory=lambda: list(BLOCK_LAYOUT_CONFIG["sub_header_labels"])
    )
    header_search_start_row: int = BLOCK_LAYOUT_CONFIG["header_search_start_row"]
    header_search_end_row: int = BLOCK_LAYOUT_CONFIG["header_search_end_row"]
    sub_header_window: int = BLOCK_LAYOUT_CONFIG["sub_header_window"]
    data_start_fallback_offset: int = BLOCK_LAYOUT_CONFIG["data_start_fallback_offset"]
    max_sheets: int = BLOCK_LAYOUT_CONFIG["max_sheets"]
    field_offsets: Dict[str, int] = field(
        default_factory=lambda: dict(BLOCK_LAYOUT_CONFIG["field_offsets"])
    )

    def __post_init__(self):
        missing = [
            name for name in BLOCK_LAYOUT_CONFIG["field_offsets"]
            if name not in self.field_offsets
        ]
        if missing:
            raise ValueError(f"Block layout is missing field offsets: {', '.join(missing)}")

        unknown = [name for name in self.field_offsets if name not in BLOCK_LAYOUT_CONFIG["field_offsets"]]
        if unknown:
            raise ValueError(f"Unknown block layout fields: {', '.join(unknown)}")

        if self.header_search_end_row < self.header_search_start_row:
            raise ValueError("header_search_end_row must not be before header_search_start_row")

        if self.sub_header_window < 0 or self.data_start_fallback_offset < 1:
            raise ValueError("sub_header_window must be >= 0 and data_start_fallback_offset >= 1")

    def with_overrides(self, overrides: Optional[Dict[str, Any]] = None) -> 'BlockLayoutPolicy':
        """Copy of the policy with some settings replaced, e.g. the data-start fallback."""
        if not overrides:
            return self

        overrides = dict(overrides)
        if "field_offsets" in overrides:
            merged = dict(self.field_offsets)
            merged.update(overrides["field_offsets"])
            overrides["field_offsets"] = merged

        return replace(self, **overrides)
