from typing import Optional


class HamlError(ValueError):
    """Base class for all compile errors. Carries the offending line and file."""

    kind = "Compile"

    def __init__(self, message: str, line_number: Optional[int] = None,
                 filename: Optional[str] = None, original_error: Optional[Exception] = None):
        self.message = message
        self.line_number = line_number
        self.filename = filename
        self.original_error = original_error
        super().__init__(self._format())

    def _format(self) -> str:
        location = []
        if self.filename:
            location.append(self.filename)
        if self.line_number is not None:
            location.append(f"Line {self.line_number}")
        where = f" ({', '.join(location)})" if location else ""
        return f"Haml {self.kind} Error{where}: {self.message}"


class HamlIndentationError(HamlError):
    """No indent unit, mixed indent characters, or an illegal level jump."""

    kind = "Indentation"


class GrammarError(HamlError):
    """The line does not match any recognized line shape."""

    kind = "Syntax"


class ConfigError(HamlError):
    """Invalid compiler options or a doctype unknown to the active format."""

    kind = "Config"


class DirectiveError(HamlError):
    """Unrecognized ?# directive."""

    kind = "Directive"


class FilterError(HamlError):
    """Unknown filter, filter failed to load, or filter cannot run."""

    kind = "Filter"
