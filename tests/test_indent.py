"""Unit tests for indent unit detection and level computation."""

import pytest

from phamlc.exceptions import HamlIndentationError
from phamlc.indent import IndentTracker


class TestDetect:
    """Test indent unit detection."""

    def test_spaces_set_width(self):
        tracker = IndentTracker()
        assert tracker.detect([(1, '%div'), (2, '    %p')]) == ' '
        assert tracker.width == 4

    def test_tab_width_is_one(self):
        tracker = IndentTracker()
        assert tracker.detect([(1, '%div'), (2, '\t\t%p')]) == '\t'
        assert tracker.width == 1

    def test_whitespace_only_lines_are_skipped(self):
        tracker = IndentTracker()
        tracker.detect([(1, '%div'), (2, '      '), (3, '  %p')])
        assert tracker.width == 2

    def test_no_indented_line(self):
        tracker = IndentTracker()
        assert tracker.detect([(1, '%p one'), (2, '%p two')]) is None
        assert tracker.level('', 2) == 0

    def test_mixed_first_indent_raises(self):
        tracker = IndentTracker('page.haml')
        with pytest.raises(HamlIndentationError) as exc:
            tracker.detect([(1, '%div'), (2, ' \t%p')])
        assert exc.value.line_number == 2
        assert exc.value.filename == 'page.haml'


class TestLevel:
    """Test level computation and validation."""

    def _tracker(self, width=2):
        tracker = IndentTracker()
        tracker.detect([(1, ' ' * width + 'x')])
        return tracker

    def test_level_from_spaces(self):
        assert self._tracker().level('    ', 1) == 2

    def test_not_a_multiple_of_width(self):
        with pytest.raises(HamlIndentationError):
            self._tracker().level('   ', 4)

    def test_wrong_indent_character(self):
        with pytest.raises(HamlIndentationError, match="Mixed indentation"):
            self._tracker().level('\t', 4)

    def test_step_of_more_than_one_level(self):
        tracker = self._tracker()
        tracker.check_step(1, 0, 3)
        with pytest.raises(HamlIndentationError) as exc:
            tracker.check_step(2, 0, 3)
        assert exc.value.line_number == 3

    def test_unit(self):
        assert self._tracker(4).unit(2) == ' ' * 8
        assert IndentTracker().unit(1) == ''
