from __future__ import annotations

from enum import Enum, StrEnum


class MenuCategory(StrEnum):
    MENU_1 = "MENÜ I"
    MENU_2 = "MENÜ II"
    MENU_3 = "MENÜ III"
    SOUP_AND_SALAD = "SUPPE & SALAT"
    UNKNOWN = "UNKNOWN"


class EditMode(Enum):
    """
    What it does:
    - Names the two states of the Gourmet orders page.

    Why it matters:
    - The site's hidden `editMode` input is inverted: it carries the value the
      toggle would switch TO, so "False" is rendered while the page IS in edit mode.

    Behavior:
    - from_wire() / wire_value translate between the raw value and the state.
    """

    IN_EDIT_MODE = "in_edit_mode"
    NOT_IN_EDIT_MODE = "not_in_edit_mode"

    @classmethod
    def from_wire(cls, raw: str | None) -> EditMode:
        if (raw or "").strip().lower() == "false":
            return cls.IN_EDIT_MODE
        return cls.NOT_IN_EDIT_MODE

    @property
    def wire_value(self) -> str:
        return "False" if self is EditMode.IN_EDIT_MODE else "True"
