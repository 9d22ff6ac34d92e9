"""
Attribute resolution and #{} interpolation.

Attributes come from four places on an element line: the class/id shorthand,
an object reference ([$obj, prefix]), a parenthesized list (name=value) and a
brace list (name => value). They are resolved into one ordered mapping of
name to rendered value; key 0 holds a whole-list function call.
"""
import re
from typing import Callable, Dict, Optional, Tuple, Union

from .exceptions import GrammarError
from .line import BRACKETS, QUOTES, Line
from .options import CompilerOptions

INTERPOLATION = re.compile(r"(?<!\\)#\{(.*?)\}")
ESCAPED_INTERPOLATION = '\\#{'

ATTRIBUTE_NAME = re.compile(r"""['"]?:?(?P<name>\w+(?:[-:.]\w+)*)['"]?\s*=>?\s*""")
QUOTED_VALUE = re.compile(r"""(?P<quote>['"])(?P<quoted>.*?)(?<!\\)(?P=quote)""", re.S)
# functions, instance methods and static methods: attrs($x), $o->attrs(), Cls::attrs()
ATTRIBUTE_FUNCTION = re.compile(r"^\$?[_a-zA-Z]\w*(?:(?:->[_a-zA-Z]\w*)+|::[_a-zA-Z]\w*)?\(.*\)$", re.S)

CLASS_NAME = r"strtolower(preg_replace('/(?<=\w)([A-Z])/', '_\1', get_class({0})))"

AttributeKey = Union[str, int]


def interpolate(text: str, options: CompilerOptions,
                literal: Optional[Callable[[str], str]] = None,
                wrap: Optional[Callable[[str], str]] = None) -> str:
    """
    Replaces each #{expr} with a code-output fragment.
    `literal` transforms the static segments, `wrap` the expressions.
    """
    def _static(segment: str) -> str:
        segment = segment.replace(ESCAPED_INTERPOLATION, '#{')
        return literal(segment) if literal else segment

    output = []
    pos = 0
    for match in INTERPOLATION.finditer(text):
        output.append(_static(text[pos:match.start()]))
        expression = match.group(1).strip()
        output.append(options.echo(wrap(expression) if wrap else expression))
        pos = match.end()
    output.append(_static(text[pos:]))
    return ''.join(output)


class AttributeResolver:
    """Builds the final attribute mapping for an element line."""

    def __init__(self, options: CompilerOptions):
        self.options = options

    def resolve(self, line: Line) -> Dict[AttributeKey, str]:
        lists: Dict[AttributeKey, str] = {}
        for subject in (line.xml_attributes, line.hash_attributes):
            if subject is None:
                continue
            try:
                self._merge(lists, self.parse_list(subject))
            except GrammarError as e:
                raise GrammarError(e.message, line.number, line.filename) from e

        if line.object_ref:
            attributes = self.parse_object_reference(line.object_ref)
        else:
            attributes = {}
            if line.classes:
                attributes['class'] = line.classes
            if line.id:
                attributes['id'] = line.id

        for name, value in lists.items():
            if name == 'class' and 'class' in attributes:
                attributes['class'] = f"{attributes['class']} {value}"
            elif name == 'id' and 'id' in attributes:
                attributes['id'] = f"{attributes['id']}_{value}"
            else:
                attributes[name] = value
        return attributes

    def _merge(self, target: Dict[AttributeKey, Optional[str]], source: Dict[AttributeKey, Optional[str]]):
        for name, value in source.items():
            if value is None:
                target.pop(name, None)
            else:
                target[name] = value

    def parse_list(self, subject: str) -> Dict[AttributeKey, Optional[str]]:
        """
        Parses the inside of a (...) or {...} list.
        A value of None marks an attribute set to false, which removes it.
        """
        subject = subject.strip()
        if not subject:
            return {}
        if ATTRIBUTE_FUNCTION.match(subject):
            return {0: self.options.echo(subject)}

        attributes: Dict[AttributeKey, Optional[str]] = {}
        pos = 0
        while True:
            match = ATTRIBUTE_NAME.search(subject, pos)
            if match is None:
                break
            name = match.group('name')
            quoted = QUOTED_VALUE.match(subject, match.end())
            if quoted:
                quote = quoted.group('quote')
                text = quoted.group('quoted').replace('\\' + quote, quote)
                attributes[name] = interpolate(text, self.options, literal=self.escape_wrapper)
                pos = quoted.end()
                continue
            value, pos = self._scan_value(subject, match.end())
            if not value:
                raise GrammarError(f"Missing value for attribute ({name}).")
            if value == 'true':
                attributes[name] = name
            elif value == 'false':
                attributes[name] = None
            else:
                attributes[name] = self.options.echo(value)
        return attributes

    def _scan_value(self, subject: str, pos: int) -> Tuple[str, int]:
        """Unquoted value: up to the next comma or whitespace outside brackets and strings."""
        closers = []
        quote = None
        i = pos
        while i < len(subject):
            char = subject[i]
            if quote:
                if char == '\\':
                    i += 1
                elif char == quote:
                    quote = None
            elif char in QUOTES:
                quote = char
            elif char in BRACKETS:
                closers.append(BRACKETS[char])
            elif closers and char == closers[-1]:
                closers.pop()
            elif not closers and (char == ',' or char.isspace()):
                break
            i += 1
        if quote or closers:
            raise GrammarError(f"Unterminated attribute value: {subject[pos:]}")
        return subject[pos:i], i

    def parse_object_reference(self, reference: str) -> Dict[AttributeKey, str]:
        """[expr] or [expr, prefix]: class from the runtime class name, id from class and ->id."""
        expression, _, prefix = reference.partition(',')
        expression = expression.strip()
        prefix = prefix.strip().strip('\'"')
        prefix = f"{prefix}_" if prefix else ''
        class_name = CLASS_NAME.format(expression)
        return {
            'class': self.options.echo(f"'{prefix}' . {class_name}"),
            'id': self.options.echo(f"'{prefix}' . {class_name} . '_' . {expression}->id"),
        }

    def escape_wrapper(self, text: str) -> str:
        if self.options.attr_wrapper == '"':
            return text.replace('"', '&quot;')
        return text.replace("'", '&apos;')
