"""
Filters transform the raw text nested under a ":name" line at render time.

A filter is found by name: "javascript" resolves to the class
JavascriptFilter, looked up first in the configured filter_path module and
then in this module. Any class providing a callable run(text) will do;
an optional init() is called once after instantiation. Subclassing
BaseFilter gives access to the options and interpolation.
"""
import html
import importlib
import logging
import threading
from typing import Dict, List, Optional

from .attributes import interpolate
from .exceptions import FilterError
from .options import CompilerOptions

logger = logging.getLogger(__name__)

DEFAULT_FILTER_MODULE = __name__


class BaseFilter:
    """Base class for filters."""

    def __init__(self, options: CompilerOptions):
        self.options = options

    def init(self):
        """Called once, after the filter is instantiated."""

    def run(self, text: str) -> str:
        raise NotImplementedError

    def interpolate(self, text: str, escape: bool = False) -> str:
        if escape:
            return interpolate(text, self.options, literal=html.escape, wrap=lambda e: f"htmlentities({e})")
        return interpolate(text, self.options)


class PlainFilter(BaseFilter):
    """Outputs the text as is, with interpolation."""

    def run(self, text: str) -> str:
        return self.interpolate(text)


class EscapedFilter(BaseFilter):
    """Like plain, but the output is x(ht)ml escaped."""

    def run(self, text: str) -> str:
        return self.interpolate(text, escape=True)


class PreserveFilter(BaseFilter):
    """Like plain, but newlines are encoded so whitespace survives indentation."""

    def run(self, text: str) -> str:
        return self.interpolate(text).replace('\n', '&#x000A;')


class CdataFilter(BaseFilter):
    """Wraps the content in CDATA tags."""

    def run(self, text: str) -> str:
        return f"<![CDATA[\n{self.interpolate(text)}\n]]>"


class JavascriptFilter(BaseFilter):
    """Wraps the content in <script> and CDATA tags."""

    def run(self, text: str) -> str:
        return ('<script type="text/javascript">\n//<![CDATA[\n'
                f"{self.interpolate(text)}\n//]]>\n</script>")


class CssFilter(BaseFilter):
    """Wraps the content in <style> and CDATA tags."""

    def run(self, text: str) -> str:
        return ('<style type="text/css">\n/*<![CDATA[*/\n'
                f"{self.interpolate(text)}\n/*]]>*/\n</style>")


class PhpFilter(BaseFilter):
    """The content is code; wrapped in the code delimiters, never interpolated."""

    def run(self, text: str) -> str:
        return f"{self.options.code_open}\n{text}\n{self.options.code_close}"


def filter_class_name(name: str) -> str:
    return f"{name[:1].upper()}{name[1:]}Filter"


class FilterRegistry:
    """
    Loads filters on first use and caches one instance per name.
    Owned by a compiler; access to the cache is serialized.
    """

    def __init__(self, options: CompilerOptions):
        self.options = options
        self._filters: Dict[str, object] = {}
        self._lock = threading.Lock()

    def get(self, name: str):
        with self._lock:
            if name not in self._filters:
                self._filters[name] = self._load(name)
            return self._filters[name]

    def _search_path(self) -> List[str]:
        modules = []
        if self.options.filter_path:
            modules.append(self.options.filter_path)
        modules.append(DEFAULT_FILTER_MODULE)
        return modules

    def _load(self, name: str):
        class_name = filter_class_name(name)
        filter_class = None
        for module_path in self._search_path():
            filter_class = self._find_class(module_path, class_name)
            if filter_class is not None:
                break
        if filter_class is None:
            raise FilterError(f"Unknown filter ({name}). No class {class_name} in {', '.join(self._search_path())}.")

        try:
            instance = filter_class(self.options)
            init = getattr(instance, 'init', None)
            if callable(init):
                init()
        except Exception as e:
            raise FilterError(f"Filter ({name}) failed to load: {e}", original_error=e) from e

        if not callable(getattr(instance, 'run', None)):
            raise FilterError(f"Invalid filter ({name}). Filters must provide a run(text) method.")
        logger.debug("Loaded filter %s from %s", name, filter_class.__module__)
        return instance

    def _find_class(self, module_path: str, class_name: str) -> Optional[type]:
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            raise FilterError(f"Could not import filter module {module_path}: {e}", original_error=e) from e
        candidate = getattr(module, class_name, None)
        if not isinstance(candidate, type) or candidate is BaseFilter:
            return None
        return candidate
