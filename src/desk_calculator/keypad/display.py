"""Calculator keypad and display buffer, independent of any GUI toolkit."""
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from desk_calculator.common.evaluator import evaluate_to_display
from desk_calculator.common.logger import logger

CLEAR_KEY = "C"
BACKSPACE_KEY = "←"
EQUALS_KEY = "="

# Button grid, row by row; None marks an empty cell
KEYPAD_LAYOUT: List[List[Optional[str]]] = [
    ["7", "8", "9", "/", CLEAR_KEY],
    ["4", "5", "6", "*", BACKSPACE_KEY],
    ["1", "2", "3", "-", None],
    ["0", ".", EQUALS_KEY, "+", None],
]

KEYS: frozenset = frozenset(key for row in KEYPAD_LAYOUT for key in row if key is not None)


class CalculatorDisplay(BaseModel):
    """
    Text buffer behind a calculator display, driven by key presses.

    Behaviour per key:
        - ``C`` empties the buffer
        - ``←`` removes the last character, if any
        - ``=`` replaces the buffer by the evaluated result, or ``Error``
        - any other key is appended as typed

    A UI shows :attr:`current` after each call to :meth:`press`.
    """

    current: str = Field(default="", description="Text currently shown on the display")

    def press(self, key: str) -> str:
        """
        Apply one key press to the display.

        :param str key: Label of the pressed key, one of :data:`KEYS`

        :return: Display text after the key press
        :rtype: str
        :raises ValueError: If the key is not on the keypad
        """
        if key not in KEYS:
            raise ValueError(f"Unknown key: {key!r}")

        if key == CLEAR_KEY:
            self.current = ""
        elif key == BACKSPACE_KEY:
            self.current = self.current[:-1]
        elif key == EQUALS_KEY:
            shown = evaluate_to_display(self.current)
            logger.debug(f"🧮 {self.current!r} -> {shown!r}")
            self.current = shown
        else:
            self.current += key

        return self.current

    def press_sequence(self, keys: Iterable[str]) -> str:
        """
        Press every key of ``keys`` in order.

        :param keys: Key labels, e.g. a string such as ``"2+3*4="``

        :return: Display text after the last key press
        :rtype: str
        """
        for key in keys:
            self.press(key)
        return self.current
