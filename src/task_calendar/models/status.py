"""
Task status table.

Each status is a single checkbox character. A status may own one
side-effect property that receives today's date when the status is entered
(completed -> ``completion``, cancelled -> ``cancelled``, deferred ->
``deferred``). The table is passed into every operation that needs it;
nothing reads it from module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class StatusOption:
    value: str
    label: str
    prop: Optional[str] = None
    # Keep the previous status's property when entering this one
    preserve_old_prop: bool = False
    completed: bool = False


DEFAULT_STATUS_OPTIONS: Tuple[StatusOption, ...] = (
    StatusOption(" ", "Incomplete"),
    StatusOption("/", "In Progress"),
    # "completed" is reserved by the Dataview task model, hence "completion"
    StatusOption("x", "Completed", prop="completion", completed=True),
    StatusOption("X", "Done", prop="completion", completed=True),
    StatusOption("-", "Cancelled", prop="cancelled"),
    StatusOption(">", "Deferred", prop="deferred", preserve_old_prop=True),
    StatusOption("!", "Important"),
    StatusOption("?", "Question"),
)


class StatusTable:
    """Ordered, immutable lookup over a sequence of StatusOption."""

    def __init__(self, options: Iterable[StatusOption] = DEFAULT_STATUS_OPTIONS) -> None:
        self._options: Tuple[StatusOption, ...] = tuple(options)
        for option in self._options:
            if len(option.value) != 1:
                raise ValueError(f"Status value must be a single character: {option.value!r}")

    def __iter__(self):
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def find(self, value: Optional[str]) -> Optional[StatusOption]:
        if value is None:
            return None
        for option in self._options:
            if option.value == value:
                return option
        return None

    def label_for(self, value: Optional[str]) -> str:
        """Display name for a status; blank or missing means Incomplete."""
        if value is None or value.strip() == "":
            return "Incomplete"
        option = self.find(value.strip())
        return option.label if option else value

    def is_completed(self, value: Optional[str]) -> bool:
        option = self.find(value)
        return bool(option and option.completed)

    @property
    def side_effect_properties(self) -> List[str]:
        """Every distinct side-effect property name, in table order."""
        props: List[str] = []
        for option in self._options:
            if option.prop and option.prop not in props:
                props.append(option.prop)
        return props

    def dropdown_options(self) -> List[StatusOption]:
        """Options with duplicate labels removed (first one wins)."""
        seen = set()
        unique = []
        for option in self._options:
            if option.label in seen:
                continue
            seen.add(option.label)
            unique.append(option)
        return unique


DEFAULT_STATUS_TABLE = StatusTable()
