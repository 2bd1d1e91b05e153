"""
SchedulerSession — the state one planner carries from generate, through
review and simulation, to commit.

A session is an ordinary value owned by its caller. Nothing here is
registered globally, so two sessions never see each other's overrides.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set
from uuid import uuid4

from plantsched.scheduling.calendar import DateWindow, PlantCapacityConfig
from plantsched.scheduling.overlay import CalendarView, project
from plantsched.scheduling.suggestions import ScheduleSuggestion


class SessionMode(str, Enum):
    LIVE = "live"
    SIMULATED = "simulated"


@dataclass
class SchedulerSession:
    factory_id: int
    config: PlantCapacityConfig
    suggestions: List[ScheduleSuggestion] = field(default_factory=list)
    accepted_ids: Set[int] = field(default_factory=set)
    overrides: Dict[int, date] = field(default_factory=dict)
    mode: SessionMode = SessionMode.LIVE
    user_id: Optional[int] = None
    session_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)

    # ── review ───────────────────────────────────────────────────────────────

    def load_suggestions(self, suggestions: Iterable[ScheduleSuggestion], accept_all: bool = True) -> None:
        self.suggestions = list(suggestions)
        self.accepted_ids = {s.module_id for s in self.suggestions} if accept_all else set()

    def accept(self, module_id: int) -> None:
        if any(s.module_id == module_id for s in self.suggestions):
            self.accepted_ids.add(module_id)

    def reject(self, module_id: int) -> None:
        self.accepted_ids.discard(module_id)

    def accepted_suggestions(self) -> List[ScheduleSuggestion]:
        return [s for s in self.suggestions if s.module_id in self.accepted_ids]

    # ── simulation ───────────────────────────────────────────────────────────

    def simulate(self, module_id: int, day: date) -> None:
        self.mode = SessionMode.SIMULATED
        self.overrides[module_id] = day

    def clear_simulation(self, module_id: int) -> None:
        self.overrides.pop(module_id, None)

    def reset(self) -> None:
        self.overrides.clear()
        self.mode = SessionMode.LIVE

    @property
    def change_count(self) -> int:
        return len(self.overrides)

    def calendar(self, persisted_modules: Iterable, window: Optional[DateWindow] = None) -> CalendarView:
        overrides = self.overrides if self.mode == SessionMode.SIMULATED else {}
        return project(persisted_modules, dict(overrides), window)

    def simulated_suggestions(self) -> List[ScheduleSuggestion]:
        return [
            ScheduleSuggestion(module_id=module_id, suggested_date=day, reason="Published from simulation")
            for module_id, day in sorted(self.overrides.items(), key=lambda item: (item[1], item[0]))
        ]
