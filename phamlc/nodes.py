from typing import Dict, List, Optional

from .attributes import AttributeKey
from .line import Line
from .options import STYLE_NESTED, CompilerOptions


class HamlNode:
    """Base class for all nodes in the document tree."""

    def __init__(self):
        self.children: List['HamlNode'] = []
        self.line: Optional[Line] = None
        self.show_source: bool = False
        self.show_output: bool = False
        self.style: str = STYLE_NESTED
        self.remove_outer_whitespace: bool = False

    def add_child(self, node: 'HamlNode') -> 'HamlNode':
        self.children.append(node)
        return node

    def walk(self):
        """Depth first iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self):
        number = self.line.number if self.line else None
        return f"<{type(self).__name__} line={number} children={len(self.children)}>"


class RootNode(HamlNode):
    """Root of the tree; holds the options the document was parsed with."""

    def __init__(self, options: CompilerOptions):
        super().__init__()
        self.options = options
        self.style = options.style


class ElementNode(HamlNode):
    def __init__(self, tag: str, attributes: Dict[AttributeKey, str], self_closing: bool = False,
                 is_block: bool = True, preserve: bool = False):
        super().__init__()
        self.tag = tag
        self.attributes = attributes
        self.self_closing = self_closing
        self.is_block = is_block
        self.preserve = preserve
        self.remove_inner_whitespace = False


class CodeBlockNode(HamlNode):
    """
    A control structure: if, foreach, for, switch, do or while.
    An if chain keeps its else/elseif blocks in `alternative`, one after another.
    """

    def __init__(self, opening: str, closing: str):
        super().__init__()
        self.opening = opening
        self.closing = closing
        self.alternative: Optional['CodeBlockNode'] = None

    @property
    def alternatives(self) -> List['CodeBlockNode']:
        chain = []
        node = self.alternative
        while node is not None:
            chain.append(node)
            node = node.alternative
        return chain


class CodeNode(HamlNode):
    """A single statement, or a case label of a switch."""

    def __init__(self, code: str):
        super().__init__()
        self.code = code


class FilterNode(HamlNode):
    """Holds the unparsed text nested under a filter line."""

    def __init__(self, filter, name: str, text: str = ''):
        super().__init__()
        self.filter = filter
        self.name = name
        self.text = text


class CommentNode(HamlNode):
    def __init__(self, text: str, condition: Optional[str] = None):
        super().__init__()
        self.text = text
        self.condition = condition


class DoctypeNode(HamlNode):
    def __init__(self, doctype: str):
        super().__init__()
        self.doctype = doctype


class TextNode(HamlNode):
    def __init__(self, text: str, is_code: bool = False):
        super().__init__()
        self.text = text
        self.is_code = is_code
