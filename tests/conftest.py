"""Shared fixtures for the phamlc test suite."""

import pytest

from phamlc import HamlCompiler
from phamlc.indent import IndentTracker
from phamlc.line import LineClassifier


@pytest.fixture
def compile_haml():
    """Compile a source string; keyword arguments become compiler options."""
    def _compile(source, **options):
        return HamlCompiler(options or None).compile(source)
    return _compile


@pytest.fixture
def classify():
    """Classify a single line with a two-space indent unit."""
    def _classify(text, number=1):
        tracker = IndentTracker()
        tracker.detect([(0, '  x')])
        return LineClassifier(tracker).classify(number, text)
    return _classify
