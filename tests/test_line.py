"""Unit tests for line splitting and classification."""

import pytest

from phamlc.exceptions import GrammarError
from phamlc.line import is_continued, join_multiline, logical_lines, split_lines


class TestSplitLines:
    """Test physical line splitting and multiline joining."""

    def test_numbers_are_one_based(self):
        assert split_lines("%p\n%br") == [(1, '%p'), (2, '%br')]

    def test_crlf_is_normalised(self):
        assert [text for _, text in split_lines("a\r\nb\rc")] == ['a', 'b', 'c']

    def test_pipes_are_kept_on_physical_lines(self):
        assert split_lines("%p one |\n  two |") == [(1, '%p one |'), (2, '  two |')]

    def test_multiline_joined_into_first_line(self):
        lines = split_lines("%p one |\n  two |\n%br")
        assert list(logical_lines(lines)) == [(1, '%p one two', True), (3, '%br', False)]

    def test_join_returns_next_index(self):
        lines = split_lines("a |\nb |\nc")
        assert join_multiline(lines, 0) == ('a b', True, 2)
        assert join_multiline(lines, 2) == ('c', False, 3)

    def test_lone_pipe_is_not_a_continuation(self):
        assert not is_continued(" |")
        assert is_continued("cat foo |")


class TestClassifyElements:
    """Test element lines."""

    def test_tag_with_shorthand_and_content(self, classify):
        line = classify('%p.intro#first Hello')
        assert line.tag == 'p'
        assert line.classes == 'intro'
        assert line.id == 'first'
        assert line.content == 'Hello'
        assert line.token is None

    def test_implicit_div_from_classes(self, classify):
        line = classify('.a.b')
        assert line.tag == 'div'
        assert line.classes == 'a b'

    def test_implicit_div_from_id(self, classify):
        assert classify('#main').tag == 'div'

    def test_attribute_groups(self, classify):
        line = classify('%a(href="x"){:title => $t} link')
        assert line.xml_attributes == 'href="x"'
        assert line.hash_attributes == ':title => $t'
        assert line.content == 'link'

    def test_brackets_inside_quotes(self, classify):
        assert classify('%p{:a => "}"}').hash_attributes == ':a => "}"'

    def test_object_reference(self, classify):
        line = classify('[$user, admin]')
        assert line.tag == 'div'
        assert line.object_ref == '$user, admin'

    def test_self_close_token(self, classify):
        assert classify('%br/').token == '/'

    def test_code_token(self, classify):
        line = classify('%p= $x')
        assert line.token == '='
        assert line.content == '$x'

    def test_whitespace_control(self, classify):
        line = classify('%p<> text')
        assert line.remove_inner_whitespace
        assert line.remove_outer_whitespace
        assert line.content == 'text'

    def test_unterminated_attribute_list(self, classify):
        with pytest.raises(GrammarError) as exc:
            classify('%div(a="x"', number=4)
        assert exc.value.line_number == 4

    def test_level_and_indent(self, classify):
        line = classify('    %p')
        assert line.level == 2
        assert line.indent == '    '
        assert line.source == '%p'


class TestClassifyOtherLines:
    """Test non-element lines."""

    def test_run_code(self, classify):
        line = classify('- if ($x)')
        assert not line.is_element
        assert line.token == '-'
        assert line.content == 'if ($x)'

    def test_haml_comment_before_run_code(self, classify):
        assert classify('-# note').token == '-#'

    def test_filter(self, classify):
        assert classify(':javascript').filter == 'javascript'

    def test_doctype(self, classify):
        line = classify('!!! Strict')
        assert line.token == '!!!'
        assert line.content == 'Strict'

    def test_directive(self, classify):
        line = classify('?#s+')
        assert line.token == '?#'
        assert line.content == 's+'

    def test_plain_markup_is_text(self, classify):
        line = classify('<p>raw</p>')
        assert line.tag is None
        assert line.token is None
        assert line.content == '<p>raw</p>'

    def test_escape_literal(self, classify):
        line = classify('\\= not code')
        assert line.token == '\\'
        assert line.content == '= not code'

    def test_interpolation_is_not_an_id(self, classify):
        line = classify('#{$count} items')
        assert not line.is_element
        assert line.content == '#{$count} items'
