"""
Renders a document tree to markup.

Styles:
- nested: each node on its own line, indented by element depth
- expanded: as nested but without indentation; block tags put content on its own line
- compact: elements without block element descendants go on one line
- compressed: no whitespace between nodes
Each node lays out its content in the style that was active when it was parsed.
"""
import html
from typing import List, Optional, Tuple

from .exceptions import FilterError, HamlError
from .nodes import (CodeBlockNode, CodeNode, CommentNode, DoctypeNode, ElementNode, FilterNode,
                    HamlNode, RootNode, TextNode)
from .options import STYLE_COMPACT, STYLE_COMPRESSED, STYLE_EXPANDED, STYLE_NESTED, CompilerOptions

INDENT = '  '


class HamlRenderer:
    """Walks a parsed tree depth first, using the options stored on its root."""

    def __init__(self):
        self.options: Optional[CompilerOptions] = None

    def render(self, root: RootNode) -> str:
        self.options = root.options
        output, _, _ = self._join(root.children, 0, False)
        return output

    # --- Layout helpers ---

    def _separator(self, style: str, depth: int) -> str:
        if style == STYLE_NESTED:
            return '\n' + INDENT * depth
        if style in (STYLE_EXPANDED, STYLE_COMPACT):
            return '\n'
        return ''

    def _join(self, nodes: List[HamlNode], depth: int, inline: bool) -> Tuple[str, Optional[HamlNode], Optional[HamlNode]]:
        """Renders sibling nodes and joins them. Returns the text and the first and last visible nodes."""
        output = ''
        first = previous = None
        for node in nodes:
            rendered = self._render(node, depth, inline)
            if not rendered:
                continue
            if previous is None:
                first = node
            else:
                output += self._between(previous, node, depth, inline)
            output += rendered
            previous = node
        return output, first, previous

    def _between(self, previous: HamlNode, node: HamlNode, depth: int, inline: bool) -> str:
        if previous.remove_outer_whitespace or node.remove_outer_whitespace:
            return ''
        if inline or node.style == STYLE_COMPRESSED:
            return ' ' if isinstance(previous, TextNode) and isinstance(node, TextNode) else ''
        return self._separator(node.style, depth)

    def _is_inline_content(self, node: HamlNode) -> bool:
        if isinstance(node, TextNode):
            return True
        if isinstance(node, ElementNode) and not node.is_block:
            return all(self._is_inline_content(child) for child in node.children)
        return False

    def _is_one_line(self, node: ElementNode) -> bool:
        children = node.children
        if node.style == STYLE_COMPRESSED:
            return True
        if node.style == STYLE_NESTED:
            if len(children) == 1 and self._is_inline_content(children[0]):
                return True
            return not node.is_block and all(self._is_inline_content(child) for child in children)
        if node.style == STYLE_EXPANDED:
            return not node.is_block and all(self._is_inline_content(child) for child in children)
        # compact
        return not any(isinstance(d, FilterNode) or (isinstance(d, ElementNode) and d.is_block)
                       for child in children for d in child.walk())

    # --- Node rendering ---

    def _render(self, node: HamlNode, depth: int, inline: bool) -> str:
        if isinstance(node, ElementNode):
            output = self._render_element(node, depth, inline)
        elif isinstance(node, CodeBlockNode):
            output = self._render_code_block(node, depth, inline)
        elif isinstance(node, CodeNode):
            output = self._render_code(node, depth, inline)
        elif isinstance(node, FilterNode):
            output = self._render_filter(node)
        elif isinstance(node, CommentNode):
            output = self._render_comment(node, depth, inline)
        elif isinstance(node, DoctypeNode):
            output = node.doctype
        elif isinstance(node, TextNode):
            output = node.text
        else:
            output, _, _ = self._join(node.children, depth, inline)
        return self._debug(node, output, depth, inline)

    def render_attributes(self, node: ElementNode) -> str:
        quote = self.options.attr_wrapper
        output = ''
        for name, value in node.attributes.items():
            if name == 0:
                if value:
                    output += f" {value}"
            else:
                output += f" {name}={quote}{value}{quote}"
        return output

    def _render_element(self, node: ElementNode, depth: int, inline: bool) -> str:
        open_tag = f"<{node.tag}{self.render_attributes(node)}"
        if node.self_closing:
            return open_tag + (' />' if self.options.is_xhtml else '>')
        open_tag += '>'
        close_tag = f"</{node.tag}>"

        if node.preserve:
            lines = [self._render(child, 0, True) for child in node.children]
            return open_tag + '\n'.join(line for line in lines if line) + close_tag

        if inline or self._is_one_line(node):
            body, _, _ = self._join(node.children, depth + 1, True)
            return open_tag + body + close_tag

        body, first, last = self._join(node.children, depth + 1, False)
        if not body:
            return open_tag + close_tag
        lead = self._separator(node.style, depth + 1)
        trail = self._separator(node.style, depth)
        if node.remove_inner_whitespace or first.remove_outer_whitespace:
            lead = ''
        if node.remove_inner_whitespace or last.remove_outer_whitespace:
            trail = ''
        return open_tag + lead + body + trail + close_tag

    def _render_code_block(self, node: CodeBlockNode, depth: int, inline: bool) -> str:
        separator = '' if inline else self._separator(node.style, depth)
        output = node.opening
        body, _, _ = self._join(node.children, depth, inline)
        if body:
            output += separator + body
        if node.alternative is not None:
            # the alternative's opening closes this block: "} else {"
            return output + separator + self._render(node.alternative, depth, inline)
        return output + separator + node.closing

    def _render_code(self, node: CodeNode, depth: int, inline: bool) -> str:
        body, _, _ = self._join(node.children, depth, inline)
        if not body:
            return node.code
        separator = '' if inline else self._separator(node.style, depth)
        return node.code + separator + body

    def _render_filter(self, node: FilterNode) -> str:
        try:
            return node.filter.run(node.text)
        except HamlError:
            raise
        except Exception as e:
            number = node.line.number if node.line else None
            filename = node.line.filename if node.line else None
            raise FilterError(f"Filter ({node.name}) failed: {e}", number, filename, original_error=e) from e

    def _render_comment(self, node: CommentNode, depth: int, inline: bool) -> str:
        if not self.options.emit_comments:
            return ''
        if node.condition:
            open_comment, close_comment = f"<!--[{node.condition}]>", '<![endif]-->'
        else:
            open_comment, close_comment = '<!--', '-->'
        body, _, _ = self._join(node.children, depth + 1, inline)
        if not body:
            text = f" {node.text} " if node.text else ' '
            return open_comment + text + close_comment
        if inline:
            return open_comment + body + close_comment
        return (open_comment + self._separator(node.style, depth + 1) + body
                + self._separator(node.style, depth) + close_comment)

    def _debug(self, node: HamlNode, output: str, depth: int, inline: bool) -> str:
        """Wraps output with a source echo and/or an escaped output echo."""
        if node.line is None or not (node.show_source or node.show_output):
            return output
        separator = '' if inline else self._separator(node.style, depth)
        if node.show_source:
            source = node.line.source.replace('--', '- -')
            echo = f"<!-- {node.line.filename or '<string>'}:{node.line.number} {source} -->"
            output = echo + separator + output if output else echo
        if node.show_output and node.line.level == 0:
            output += separator + f'<pre class="haml-debug">{html.escape(output)}</pre>'
        return output
