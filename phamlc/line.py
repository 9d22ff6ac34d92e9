import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .exceptions import GrammarError
from .indent import IndentTracker

# --- Line tokens ---
DOCTYPE = '!!!'
DIRECTIVE = '?#'
HAML_COMMENT = '-#'
XML_COMMENT = '/'
SELF_CLOSE_TAG = '/'
UNESCAPE_XML = '!='
ESCAPE_XML = '&='
INSERT_CODE = '='
INSERT_CODE_PRESERVE_WHITESPACE = '~'
RUN_CODE = '-'
ESCAPE_LITERAL = '\\'

REMOVE_INNER_WHITESPACE = '<'
REMOVE_OUTER_WHITESPACE = '>'
MULTILINE = ' |'

FILTER_LINE = re.compile(r":(?P<filter>\w+)\s*$")
TAG = re.compile(r"%(?P<tag>[\w:-]+)")
SHORTHAND = re.compile(r"(?:\.[-_:a-zA-Z][-:\w]*|#[_:a-zA-Z][-:\w]*)+")
SHORTHAND_PART = re.compile(r"([.#])([^.#]+)")
LINE_TOKEN = re.compile(r"(?P<token>\?#|!!!|-#|!=|&=|=|~|-|/|\\)? *(?P<content>.*)$")
ELEMENT_TAIL = re.compile(r"(?P<ws>[<>]{0,2}) *(?P<token>!=|&=|=|~|/|\\)? *(?P<content>.*)$")

BRACKETS = {'[': ']', '(': ')', '{': '}'}
QUOTES = ('"', "'")


@dataclass
class Line:
    """One logical source line split into named fields."""

    number: int
    filename: Optional[str]
    indent: str
    level: int
    source: str
    filter: Optional[str] = None
    tag: Optional[str] = None
    classes: Optional[str] = None
    id: Optional[str] = None
    object_ref: Optional[str] = None
    xml_attributes: Optional[str] = None
    hash_attributes: Optional[str] = None
    whitespace_control: str = ''
    token: Optional[str] = None
    content: str = ''
    multiline: bool = False

    @property
    def is_element(self) -> bool:
        return self.tag is not None

    @property
    def remove_inner_whitespace(self) -> bool:
        return REMOVE_INNER_WHITESPACE in self.whitespace_control

    @property
    def remove_outer_whitespace(self) -> bool:
        return REMOVE_OUTER_WHITESPACE in self.whitespace_control


def is_blank(text: str) -> bool:
    return not text.strip()


def split_lines(source: str) -> List[Tuple[int, str]]:
    """Splits source into (number, text) physical lines, trailing whitespace removed."""
    physical = source.replace('\r\n', '\n').replace('\r', '\n').split('\n')
    return [(i + 1, text.rstrip()) for i, text in enumerate(physical)]


def is_continued(text: str) -> bool:
    return text.endswith(MULTILINE) and not is_blank(text[:-len(MULTILINE)])


def join_multiline(lines: List[Tuple[int, str]], index: int) -> Tuple[str, bool, int]:
    """
    Reads the logical line starting at lines[index]. Consecutive lines ending
    in " |" are joined with a space. Returns the text, whether it was joined
    and the index of the next physical line.
    """
    text = lines[index][1]
    if not is_continued(text):
        return text, False, index + 1
    parts = [text[:-len(MULTILINE)].rstrip()]
    index += 1
    while index < len(lines) and is_continued(lines[index][1]):
        parts.append(lines[index][1][:-len(MULTILINE)].strip())
        index += 1
    return ' '.join(parts), True, index


def logical_lines(lines: List[Tuple[int, str]]) -> Iterator[Tuple[int, str, bool]]:
    """(number, text, multiline) for every logical line, numbered by its first physical line."""
    index = 0
    while index < len(lines):
        number = lines[index][0]
        text, multiline, index = join_multiline(lines, index)
        yield number, text, multiline


def leading_whitespace(text: str) -> str:
    return text[:len(text) - len(text.lstrip(' \t'))]


class LineClassifier:
    """Turns one logical line into a Line record."""

    def __init__(self, tracker: IndentTracker, filename: Optional[str] = None):
        self.tracker = tracker
        self.filename = filename

    def classify(self, number: int, text: str, multiline: bool = False) -> Line:
        indent = leading_whitespace(text)
        source = text[len(indent):].rstrip()
        line = Line(number=number, filename=self.filename, indent=indent,
                    level=self.tracker.level(indent, number), source=source, multiline=multiline)

        match = FILTER_LINE.match(source)
        if match:
            line.filter = match.group('filter')
            return line

        pos = self._scan_element(line, source)
        if line.tag is None:
            match = LINE_TOKEN.match(source)
            line.token = match.group('token')
            line.content = match.group('content')
            return line

        match = ELEMENT_TAIL.match(source, pos)
        line.whitespace_control = match.group('ws')
        line.token = match.group('token')
        line.content = match.group('content')
        return line

    def _scan_element(self, line: Line, source: str) -> int:
        """Fills tag, shorthand and attribute fields. Returns the position after them."""
        pos = 0
        match = TAG.match(source, pos)
        if match:
            line.tag = match.group('tag')
            pos = match.end()

        match = SHORTHAND.match(source, pos)
        if match:
            classes, ids = [], []
            for kind, name in SHORTHAND_PART.findall(match.group(0)):
                (classes if kind == '.' else ids).append(name)
            line.classes = ' '.join(classes) or None
            line.id = '_'.join(ids) or None
            pos = match.end()

        seen = set()
        while pos < len(source) and source[pos] in BRACKETS and source[pos] not in seen:
            opener = source[pos]
            # object reference must come before the attribute lists
            if opener == '[' and seen:
                break
            seen.add(opener)
            inner, pos = self._scan_group(source, pos, line.number)
            if opener == '[':
                line.object_ref = inner.strip()
            elif opener == '(':
                line.xml_attributes = inner
            else:
                line.hash_attributes = inner

        if line.tag is None and (line.classes or line.id or seen):
            line.tag = 'div'
        return pos

    def _scan_group(self, source: str, pos: int, number: int) -> Tuple[str, int]:
        """Balanced scan of a bracketed group, skipping quoted strings."""
        stack = [BRACKETS[source[pos]]]
        quote = None
        i = pos + 1
        while i < len(source):
            char = source[i]
            if quote:
                if char == '\\':
                    i += 1
                elif char == quote:
                    quote = None
            elif char in QUOTES:
                quote = char
            elif char in BRACKETS:
                stack.append(BRACKETS[char])
            elif char == stack[-1]:
                stack.pop()
                if not stack:
                    return source[pos + 1:i], i + 1
            i += 1
        raise GrammarError(f"Unterminated attribute list: {source[pos:]}", number, self.filename)
