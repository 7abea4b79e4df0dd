"""Series current limiting.

In a series string the same current flows through every panel, so the first
degraded panel caps the current of every panel wired after it. Followers
take the originator's state and current for display, but keep their own
health: they are limited by the break, not damaged by it.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..models.panel import RowSnapshot


class CascadePropagator:

    @staticmethod
    def find_originating_index(row: RowSnapshot) -> Optional[int]:
        for i, panel in enumerate(row.panels):
            if panel.state.degraded:
                return i
        return None

    def propagate(self, row: RowSnapshot) -> RowSnapshot:
        origin_idx = self.find_originating_index(row)
        if origin_idx is None:
            return row

        origin = row.panels[origin_idx]
        panels = list(row.panels[:origin_idx])
        panels.append(replace(origin, is_originating=True, affected_by_series_break=False))
        for follower in row.panels[origin_idx + 1:]:
            panels.append(replace(
                follower,
                state=origin.state,
                current=origin.current,
                power=follower.voltage * origin.current,
                affected_by_series_break=True,
                is_originating=False,
            ))

        return replace(row, panels=panels, originating_index=origin_idx)
