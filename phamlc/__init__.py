from .compiler import HamlCompiler
from .exceptions import ConfigError, DirectiveError, FilterError, GrammarError, HamlError, HamlIndentationError
from .filters import BaseFilter, FilterRegistry
from .options import CompilerOptions


def compile_haml(source: str, options=None, filename=None) -> str:
    """Compiles Haml source with a fresh compiler."""
    return HamlCompiler(options).compile(source, filename)
