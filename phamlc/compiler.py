import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from .attributes import AttributeResolver, interpolate
from .exceptions import ConfigError, DirectiveError, FilterError, GrammarError
from .filters import FilterRegistry
from .indent import IndentTracker
from .line import (DIRECTIVE, DOCTYPE, ESCAPE_XML, HAML_COMMENT, INSERT_CODE, INSERT_CODE_PRESERVE_WHITESPACE,
                   RUN_CODE, SELF_CLOSE_TAG, UNESCAPE_XML, XML_COMMENT, Line, LineClassifier, is_blank,
                   join_multiline, leading_whitespace, logical_lines, split_lines)
from .nodes import (CodeBlockNode, CodeNode, CommentNode, DoctypeNode, ElementNode, FilterNode, HamlNode,
                    RootNode, TextNode)
from .options import DOCTYPES, STYLES, CompilerOptions
from .renderer import HamlRenderer

logger = logging.getLogger(__name__)

CODE_TOKENS = (INSERT_CODE, INSERT_CODE_PRESERVE_WHITESPACE, UNESCAPE_XML, ESCAPE_XML)

BLOCK = re.compile(r"^(if|foreach|for|switch|do|while)\b\s*(.*)$", re.S)
ELSE = re.compile(r"^(?:else\s*if|elseif|else)\b")
ELSE_IF = re.compile(r"^(?:else\s*if|elseif)\b")
CASE = re.compile(r"^(?:case|default)\b")
DEBUG_DIRECTIVE = re.compile(r"^(?P<flags>so|os|s|o)(?P<switch>[+\-!]?)$")

XML_PROLOG = 'XML'
DEFAULT_XML_ENCODING = 'utf-8'

RawLine = Tuple[int, str]


class HamlCompiler:
    """
    Haml Compiler
    Compiles Haml source to markup with embedded PHP code fragments.

    Features:
    - Indentation-based hierarchy (spaces or tabs, detected from the document)
    - Elements with %tag, .class and #id shorthand; implicit div
    - (html=style) and {hash => style} attribute lists, object references [$obj]
    - Control blocks (- if / elseif / else, foreach, for, switch, do, while)
    - Code output (=, ~, !=, &=) and #{} interpolation
    - Filters (:plain, :escaped, :preserve, :cdata, :javascript, :css, :php)
    - XML, conditional and Haml (-#) comments, doctypes
    - Whitespace control (< and >) and output styles
    - ?# directives for source/output debugging and style switching
    """

    def __init__(self, options: Union[CompilerOptions, Mapping, None] = None,
                 filters: Optional[FilterRegistry] = None):
        """Initializes the compiler. Options may be a CompilerOptions or a config mapping."""
        if options is None:
            options = CompilerOptions()
        elif not isinstance(options, CompilerOptions):
            options = CompilerOptions.from_mapping(options)
        self.options = options
        self.filters = filters if filters is not None else FilterRegistry(options)
        self.attributes = AttributeResolver(options)
        self.renderer = HamlRenderer()
        self._reset(None)

    def _reset(self, filename: Optional[str]):
        """Resets per-document state; the filter registry is kept."""
        self.filename = filename
        self.tracker = IndentTracker(filename)
        self.classifier = LineClassifier(self.tracker, filename)
        self.lines: List[RawLine] = []
        self.pos = 0
        self.show_source = self.options.show_source
        self.show_output = self.options.show_output
        self.style = self.options.style

    def _fatal_error(self, error_class, message: str, line_number: Optional[int] = None):
        raise error_class(message, line_number, self.filename)

    # --- Public API ---

    def compile(self, source: str, filename: Optional[str] = None) -> str:
        """Compiles Haml source to markup."""
        root = self.parse(source, filename)
        output = self.renderer.render(root)
        logger.debug("Compiled %s (%d lines)", filename or '<string>', len(self.lines))
        return output

    def compile_file(self, path: Union[str, Path]) -> str:
        path = Path(path)
        return self.compile(path.read_text(encoding='utf-8'), str(path))

    def parse(self, source: str, filename: Optional[str] = None) -> RootNode:
        """Parses Haml source into a document tree."""
        self._reset(filename)
        self.lines = split_lines(source)
        self.tracker.detect((number, text) for number, text, _ in logical_lines(self.lines))
        root = RootNode(self.options)
        self._build_tree(root, -1)
        return root

    # --- Tree building ---

    def _build_tree(self, parent: HamlNode, parent_level: int):
        """Consumes lines belonging under parent (those deeper than parent_level)."""
        while self.pos < len(self.lines):
            number, text = self.lines[self.pos]
            if is_blank(text):
                self.pos += 1
                continue
            level = self.tracker.level(leading_whitespace(text), number)
            if level <= parent_level:
                return
            self.tracker.check_step(level, parent_level, number)
            text, multiline, self.pos = join_multiline(self.lines, self.pos)

            line = self.classifier.classify(number, text, multiline)
            node = self._parse_line(line)
            if node is None:
                continue
            self._stamp(node, line)
            parent.add_child(node)
            self._add_children(node, line)
            if isinstance(node, CodeBlockNode):
                self._attach_alternative(node, line)

    def _stamp(self, node: HamlNode, line: Line):
        node.line = line
        node.show_source = self.show_source
        node.show_output = self.show_output
        node.style = self.style

    def _peek(self) -> Optional[int]:
        """Index of the next non-blank line, or None."""
        index = self.pos
        while index < len(self.lines):
            if not is_blank(self.lines[index][1]):
                return index
            index += 1
        return None

    def _has_child(self, line: Line, eat_all: bool = False) -> bool:
        """
        Whether the next non-blank line is a child of line.
        With eat_all any deeper line is a child; otherwise it must be exactly one level deeper.
        """
        index = self._peek()
        if index is None:
            return False
        number, text = self.lines[index]
        indent = leading_whitespace(text)
        if eat_all:
            return len(indent) > len(line.indent)
        level = self.tracker.level(indent, number)
        if level <= line.level:
            return False
        self.tracker.check_step(level, line.level, number)
        return True

    def _add_children(self, node: HamlNode, line: Line):
        if isinstance(node, FilterNode):
            node.text = self._collect_block(line)
            return
        if not self._has_child(line):
            return
        if isinstance(node, (TextNode, DoctypeNode)):
            self._fatal_error(GrammarError, "Illegal nesting: nesting within plain text or a doctype is illegal.",
                              line.number)
        if isinstance(node, ElementNode) and node.self_closing:
            self._fatal_error(GrammarError, f"Illegal nesting: self-closing element ({node.tag}) cannot have content.",
                              line.number)
        if isinstance(node, CommentNode) and node.text:
            self._fatal_error(GrammarError, "Illegal nesting: a comment with content cannot have nested lines.",
                              line.number)
        self._build_tree(node, line.level)

    def _attach_alternative(self, block: CodeBlockNode, line: Line):
        """Builds an else/elseif that directly follows block at the same level into block.alternative."""
        index = self._peek()
        if index is None:
            return
        number, text = self.lines[index]
        if self.tracker.level(leading_whitespace(text), number) != line.level:
            return
        text, multiline, end = join_multiline(self.lines, index)
        else_line = self.classifier.classify(number, text, multiline)
        if not self._is_else(else_line):
            return
        self.pos = end
        alternative = CodeBlockNode(self.options.code(f"}} {else_line.content.strip()} {{"), block.closing)
        self._stamp(alternative, else_line)
        block.alternative = alternative
        self._add_children(alternative, else_line)
        if ELSE_IF.match(else_line.content.strip()):
            self._attach_alternative(alternative, else_line)

    def _collect_block(self, line: Line) -> str:
        """Collects the raw physical lines deeper than line, dedented by one level. Blank lines are kept."""
        child_indent = line.indent + self.tracker.unit(1)
        body: List[str] = []
        while self.pos < len(self.lines):
            number, text = self.lines[self.pos]
            if is_blank(text):
                body.append('')
                self.pos += 1
                continue
            indent = leading_whitespace(text)
            if len(indent) <= len(line.indent):
                break
            if not text.startswith(child_indent):
                self._fatal_error(GrammarError, "Invalid indentation in filter content.", number)
            body.append(text[len(child_indent):])
            self.pos += 1
        while body and not body[-1]:
            body.pop()
        return '\n'.join(body)

    # --- Line dispatch ---

    def _parse_line(self, line: Line) -> Optional[HamlNode]:
        """Parses a line into a node. Returns None for lines that produce no node."""
        if not line.is_element and line.token == HAML_COMMENT:
            return self._parse_haml_comment(line)
        if not line.is_element and line.token == XML_COMMENT:
            return self._parse_xml_comment(line)
        if line.is_element:
            return self._parse_element(line)
        if line.token == RUN_CODE:
            return self._parse_code(line)
        if line.token == DIRECTIVE:
            return self._parse_directive(line)
        if line.filter:
            return self._parse_filter(line)
        if line.token == DOCTYPE:
            return self._parse_doctype(line)
        return self._parse_content(line)

    def _is_else(self, line: Line) -> bool:
        return not line.is_element and line.token == RUN_CODE and bool(ELSE.match(line.content.strip()))

    def _parse_haml_comment(self, line: Line) -> None:
        """A Haml comment with no content eats all deeper lines."""
        if line.content:
            if self._has_child(line, eat_all=True):
                self._fatal_error(GrammarError, "Illegal nesting: a Haml comment with content cannot have nested lines.",
                                  line.number)
            return None
        while self._has_child(line, eat_all=True):
            self.pos = self._peek() + 1
        return None

    def _parse_xml_comment(self, line: Line) -> CommentNode:
        content = line.content.strip()
        if content.startswith('[') and content.endswith(']'):
            return CommentNode('', condition=content[1:-1])
        return CommentNode(interpolate(content, self.options))

    def _parse_element(self, line: Line) -> ElementNode:
        tag = line.tag
        self_closing = tag in self.options.void_tags or line.token == SELF_CLOSE_TAG
        node = ElementNode(tag, self.attributes.resolve(line), self_closing=self_closing,
                           is_block=tag not in self.options.inline_tags,
                           preserve=tag in self.options.preserve_tags)
        node.remove_inner_whitespace = line.remove_inner_whitespace
        node.remove_outer_whitespace = line.remove_outer_whitespace

        has_content = bool(line.content) or line.token in CODE_TOKENS
        if self_closing and has_content:
            self._fatal_error(GrammarError, f"Self-closing element ({tag}) cannot have content.", line.number)
        if has_content:
            child = self._parse_content(line)
            child.line = line
            child.style = self.style
            node.add_child(child)
        return node

    def _parse_code(self, line: Line) -> Optional[HamlNode]:
        content = line.content.strip()
        if not content:
            self._fatal_error(GrammarError, f"No code given after '{RUN_CODE}'.", line.number)
        if ELSE.match(content):
            self._fatal_error(GrammarError, f"'{content}' must follow an if block at the same indentation.",
                              line.number)

        match = BLOCK.match(content)
        if match:
            keyword, condition = match.groups()
            if keyword == 'do':
                if not condition:
                    self._fatal_error(GrammarError, "A do block needs a while condition: - do ($condition)",
                                      line.number)
                if not (condition.startswith('(') and condition.endswith(')')):
                    condition = f"({condition})"
                return CodeBlockNode(self.options.code('do {'), self.options.code(f"}} while {condition};"))
            return CodeBlockNode(self.options.code(f"{content} {{"), self.options.code('}'))

        if CASE.match(content):
            return CodeNode(self.options.code(content if content.endswith(':') else f"{content}:"))
        return CodeNode(self.options.code(content if content.endswith(';') else f"{content};"))

    def _parse_content(self, line: Line) -> TextNode:
        """Plain text, escaped literal text, or a code-output fragment."""
        content = line.content
        if line.token not in CODE_TOKENS:
            wrap = (lambda e: f"htmlentities({e})") if self.options.escape_output else None
            return TextNode(interpolate(content, self.options, wrap=wrap))

        expression = content.strip()
        if not expression:
            self._fatal_error(GrammarError, f"No code given after '{line.token}'.", line.number)
        escape = line.token == ESCAPE_XML or (
            line.token in (INSERT_CODE, INSERT_CODE_PRESERVE_WHITESPACE) and self.options.escape_output)
        if escape:
            expression = f"htmlentities({expression})"
        if line.token == INSERT_CODE_PRESERVE_WHITESPACE:
            expression = f"str_replace(\"\\n\", '&#x000A;', {expression})"
        return TextNode(self.options.echo(expression), is_code=True)

    def _parse_directive(self, line: Line) -> None:
        """?#s, ?#o, ?#so / ?#os with +, - or ! toggle debugging; ?#<style> switches the style."""
        content = line.content.strip()
        match = DEBUG_DIRECTIVE.match(content)
        if match:
            switch = match.group('switch')
            if 's' in match.group('flags'):
                self.show_source = self._switch(self.show_source, switch)
            if 'o' in match.group('flags'):
                self.show_output = self._switch(self.show_output, switch)
            return None
        if content in STYLES:
            self.style = content
            return None
        self._fatal_error(DirectiveError, f"Invalid directive ({DIRECTIVE}{content}).", line.number)

    @staticmethod
    def _switch(current: bool, switch: str) -> bool:
        if switch == '+':
            return True
        if switch == '-':
            return False
        if switch == '!':
            return not current
        return current

    def _parse_filter(self, line: Line) -> FilterNode:
        try:
            filter_object = self.filters.get(line.filter)
        except FilterError as e:
            raise FilterError(e.message, line.number, self.filename, original_error=e.original_error) from e
        return FilterNode(filter_object, line.filter)

    def _parse_doctype(self, line: Line) -> DoctypeNode:
        parts = line.content.split()
        doctypes = DOCTYPES.get(self.options.format, {})
        if parts and parts[0] == XML_PROLOG:
            encoding = parts[1] if len(parts) > 1 else DEFAULT_XML_ENCODING
            return DoctypeNode(self.options.code(f"echo \"<?xml version='1.0' encoding='{encoding}' ?>\\n\";"))
        if not parts:
            return DoctypeNode(self.options.doctype or doctypes[''])
        if parts[0] in doctypes:
            return DoctypeNode(doctypes[parts[0]])
        valid = ', '.join(name for name in doctypes if name)
        self._fatal_error(ConfigError, f"Invalid doctype ({parts[0]}). Doctype must be empty or one of "
                                       f"{valid} for the current format ({self.options.format}).", line.number)
