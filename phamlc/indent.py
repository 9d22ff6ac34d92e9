from typing import Iterable, Optional, Tuple

from .exceptions import HamlIndentationError

INDENT_CHARS = (' ', '\t')


class IndentTracker:
    """
    Determines the document's indent unit and computes line levels.

    The first character of the first indented line sets the unit. If it is a
    space the length of the run sets the width; a tab is always width 1.
    """

    def __init__(self, filename: Optional[str] = None):
        self.filename = filename
        self.char: Optional[str] = None
        self.width: int = 0

    def detect(self, lines: Iterable[Tuple[int, str]]) -> Optional[str]:
        """Scans (number, text) pairs for the first indented line. Returns the unit or None."""
        for number, text in lines:
            if not text.strip() or text[0] not in INDENT_CHARS:
                continue
            char = text[0]
            run = len(text) - len(text.lstrip(char))
            if text[run] in INDENT_CHARS:
                raise HamlIndentationError("Mixed indentation not allowed.", number, self.filename)
            self.char = char
            self.width = run if char == ' ' else 1
            return char
        return None

    def level(self, indent: str, number: int) -> int:
        """Nesting depth of a leading whitespace run."""
        if not indent:
            return 0
        if self.char is None:
            raise HamlIndentationError("Unable to determine indent character.", number, self.filename)
        if indent.strip(self.char):
            raise HamlIndentationError("Mixed indentation not allowed.", number, self.filename)
        if len(indent) % self.width:
            raise HamlIndentationError(
                f"Invalid indentation. Expected a multiple of {self.width} spaces.", number, self.filename)
        return len(indent) // self.width

    def check_step(self, level: int, parent_level: int, number: int):
        """Nesting may only deepen by one level per line."""
        if level > parent_level + 1:
            raise HamlIndentationError(
                f"Illegal indentation level ({level}); indentation level can only increase by one.",
                number, self.filename)

    def unit(self, level: int) -> str:
        """Whitespace string for a level, in the document's own unit."""
        if level <= 0 or self.char is None:
            return ''
        return self.char * (self.width * level)
