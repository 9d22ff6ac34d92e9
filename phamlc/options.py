"""
Compiler options.

The option names mirror the keys accepted in the YAML config (camelCase),
converted to snake_case attributes on CompilerOptions.
"""
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ConfigError

DEBUG_NONE = 0
DEBUG_SHOW_SOURCE = 1
DEBUG_SHOW_OUTPUT = 2
DEBUG_SHOW_ALL = 3

STYLE_NESTED = 'nested'
STYLE_EXPANDED = 'expanded'
STYLE_COMPACT = 'compact'
STYLE_COMPRESSED = 'compressed'
STYLES = (STYLE_NESTED, STYLE_EXPANDED, STYLE_COMPACT, STYLE_COMPRESSED)

# Key '' is the default doctype of the format (plain "!!!")
DOCTYPES: Dict[str, Dict[str, str]] = {
    'html4': {
        '': '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01 Transitional//EN" "http://www.w3.org/TR/html4/loose.dtd">',
        'Strict': '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01//EN" "http://www.w3.org/TR/html4/strict.dtd">',
        'Frameset': '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01 Frameset//EN" "http://www.w3.org/TR/html4/frameset.dtd">',
    },
    'html5': {
        '': '<!DOCTYPE html>',
        '5': '<!DOCTYPE html>',
    },
    'xhtml': {
        '': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">',
        'Strict': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">',
        'Frameset': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Frameset//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-frameset.dtd">',
        '5': '<!DOCTYPE html>',
        '1.1': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">',
        'Basic': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML Basic 1.1//EN" "http://www.w3.org/TR/xhtml-basic/xhtml-basic11.dtd">',
        'Mobile': '<!DOCTYPE html PUBLIC "-//WAPFORUM//DTD XHTML Mobile 1.2//EN" "http://www.openmobilealliance.org/tech/DTD/xhtml-mobile12.dtd">',
    },
}

VOID_TAGS = ('meta', 'img', 'link', 'br', 'hr', 'input', 'area', 'param', 'col', 'base')
INLINE_TAGS = ('a', 'abbr', 'acronym', 'b', 'big', 'cite', 'code', 'dfn', 'em', 'i', 'kbd', 'q',
               'samp', 'small', 'span', 'strike', 'strong', 'tt', 'u', 'var')
PRESERVE_TAGS = ('pre', 'textarea')


@dataclass(frozen=True)
class CompilerOptions:
    """Configuration record consumed by the compiler, the filters and the renderer."""

    format: str = 'xhtml'
    doctype: Optional[str] = None
    escape_output: bool = False
    suppress_eval: bool = False
    attr_wrapper: str = '"'
    style: str = STYLE_NESTED
    ugly: bool = False
    preserve_comments: bool = False
    debug: int = DEBUG_NONE
    filter_path: Optional[str] = None
    code_open: str = '<?php'
    code_close: str = '?>'
    void_tags: Tuple[str, ...] = field(default=VOID_TAGS)
    inline_tags: Tuple[str, ...] = field(default=INLINE_TAGS)
    preserve_tags: Tuple[str, ...] = field(default=PRESERVE_TAGS)

    def __post_init__(self):
        object.__setattr__(self, 'format', self.format.lower())
        if self.ugly:
            object.__setattr__(self, 'style', STYLE_COMPRESSED)
        for name in ('void_tags', 'inline_tags', 'preserve_tags'):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        if self.doctype is None and self.format not in DOCTYPES:
            formats = ', '.join(DOCTYPES)
            raise ConfigError(f"Invalid format ({self.format}). Format option must be one of {formats}.")
        if self.style not in STYLES:
            raise ConfigError(f"Invalid style ({self.style}). Style option must be one of {', '.join(STYLES)}.")
        if self.attr_wrapper not in ('"', "'"):
            raise ConfigError(f"Invalid attrWrapper ({self.attr_wrapper}). Use a single or double quote.")
        if self.debug not in (DEBUG_NONE, DEBUG_SHOW_SOURCE, DEBUG_SHOW_OUTPUT, DEBUG_SHOW_ALL):
            raise ConfigError(f"Invalid debug mode ({self.debug}). Debug must be between 0 and 3.")

    @property
    def is_xhtml(self) -> bool:
        return self.format == 'xhtml'

    @property
    def show_source(self) -> bool:
        return bool(self.debug & DEBUG_SHOW_SOURCE)

    @property
    def show_output(self) -> bool:
        return bool(self.debug & DEBUG_SHOW_OUTPUT)

    @property
    def emit_comments(self) -> bool:
        return not self.ugly or self.preserve_comments

    def code(self, statement: str) -> str:
        """Wraps a statement in the code emission delimiters."""
        return f"{self.code_open} {statement} {self.code_close}"

    def echo(self, expression: str) -> str:
        """Code-output fragment for an expression; empty when evaluation is suppressed."""
        if self.suppress_eval:
            return ''
        return self.code(f"echo {expression};")

    def create_updated(self, **kwargs: Any) -> 'CompilerOptions':
        return replace(self, **kwargs)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> 'CompilerOptions':
        """Builds options from a config mapping, accepting camelCase or snake_case keys."""
        if not mapping:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in mapping.items():
            name = re.sub(r'(?<=[a-z0-9])([A-Z])', r'_\1', str(key)).lower()
            if name not in known:
                raise ConfigError(f"Unknown option ({key}).")
            kwargs[name] = value
        return cls(**kwargs)
