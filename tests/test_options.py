"""Unit tests for CompilerOptions."""

import pytest

from phamlc.exceptions import ConfigError
from phamlc.options import STYLE_COMPRESSED, CompilerOptions


class TestCompilerOptions:
    """Test option validation and helpers."""

    def test_defaults(self):
        options = CompilerOptions()
        assert options.format == 'xhtml'
        assert options.style == 'nested'
        assert options.is_xhtml
        assert not options.show_source

    def test_ugly_forces_compressed(self):
        options = CompilerOptions(ugly=True)
        assert options.style == STYLE_COMPRESSED
        assert not options.emit_comments
        assert CompilerOptions(ugly=True, preserve_comments=True).emit_comments

    def test_format_is_lowercased(self):
        assert CompilerOptions(format='HTML5').format == 'html5'

    @pytest.mark.parametrize("kwargs", [
        {'format': 'sgml'},
        {'style': 'pretty'},
        {'attr_wrapper': '`'},
        {'debug': 4},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            CompilerOptions(**kwargs)

    def test_unknown_format_allowed_with_doctype(self):
        assert CompilerOptions(format='custom', doctype='<!DOCTYPE custom>').doctype == '<!DOCTYPE custom>'

    def test_debug_flags(self):
        options = CompilerOptions(debug=3)
        assert options.show_source and options.show_output

    def test_echo_and_code(self):
        options = CompilerOptions(code_open='<?', code_close='?>')
        assert options.code('$x = 1;') == '<? $x = 1; ?>'
        assert options.echo('$x') == '<? echo $x; ?>'

    def test_create_updated(self):
        options = CompilerOptions()
        updated = options.create_updated(style='compact')
        assert updated.style == 'compact'
        assert options.style == 'nested'


class TestFromMapping:
    """Test building options from a config mapping."""

    def test_camel_case_keys(self):
        options = CompilerOptions.from_mapping({'escapeOutput': True, 'attrWrapper': "'", 'voidTags': ['br']})
        assert options.escape_output
        assert options.attr_wrapper == "'"
        assert options.void_tags == ('br',)

    def test_snake_case_keys(self):
        assert CompilerOptions.from_mapping({'suppress_eval': True}).suppress_eval

    def test_empty(self):
        assert CompilerOptions.from_mapping(None) == CompilerOptions()

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown option"):
            CompilerOptions.from_mapping({'colour': 'red'})
