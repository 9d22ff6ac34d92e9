"""Tests for recompilation and the file change handler."""

import logging
from unittest.mock import Mock, patch

from phamlc import HamlCompiler
from phamlc.watcher import ChangeHandler, run_watcher, trigger_recompile


class TestTriggerRecompile:
    """Test compiling src/dst pairs."""

    def test_writes_output(self, tmp_path):
        src = tmp_path / 'index.haml'
        src.write_text("%p hi", encoding='utf-8')
        dst = tmp_path / 'out' / 'index.php'

        assert trigger_recompile({src: dst}, HamlCompiler()) == 1
        assert dst.read_text(encoding='utf-8') == "<p>hi</p>"

    def test_compile_error_is_logged(self, tmp_path, caplog):
        src = tmp_path / 'bad.haml'
        src.write_text("%div\n      %p\n  %span", encoding='utf-8')
        dst = tmp_path / 'bad.php'

        with caplog.at_level(logging.ERROR):
            assert trigger_recompile({src: dst}, HamlCompiler()) == 0
        assert not dst.exists()
        assert 'Failed to compile' in caplog.text

    def test_missing_source_is_logged(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            assert trigger_recompile({tmp_path / 'nope.haml': tmp_path / 'nope.php'}, HamlCompiler()) == 0
        assert 'Could not read' in caplog.text


class TestChangeHandler:
    """Test the watchdog event handler."""

    def _handler(self, tmp_path):
        src = tmp_path / 'index.haml'
        src.write_text("%p one", encoding='utf-8')
        dst = tmp_path / 'index.php'
        return ChangeHandler([src], {src: dst}, HamlCompiler()), src, dst

    def test_modified_watched_file(self, tmp_path):
        handler, src, dst = self._handler(tmp_path)
        handler.on_modified(Mock(is_directory=False, src_path=str(src)))
        assert dst.read_text(encoding='utf-8') == "<p>one</p>"

    def test_ignores_other_files(self, tmp_path):
        handler, _, dst = self._handler(tmp_path)
        handler.on_modified(Mock(is_directory=False, src_path=str(tmp_path / 'other.txt')))
        assert not dst.exists()

    def test_ignores_directories(self, tmp_path):
        handler, src, dst = self._handler(tmp_path)
        handler.on_modified(Mock(is_directory=True, src_path=str(src)))
        assert not dst.exists()

    def test_created_counts_as_modified(self, tmp_path):
        handler, src, dst = self._handler(tmp_path)
        handler.on_created(Mock(is_directory=False, src_path=str(src)))
        assert dst.exists()


class TestRunWatcher:
    """Test observer setup."""

    @patch('phamlc.watcher.Observer')
    def test_schedules_parent_directories(self, mock_observer_class, tmp_path):
        observer = mock_observer_class.return_value
        observer.is_alive.side_effect = [True, False, False]
        src = tmp_path / 'index.haml'
        src.write_text("%p", encoding='utf-8')

        run_watcher({src: tmp_path / 'index.php'}, set(), HamlCompiler())

        observer.schedule.assert_called_once()
        assert observer.schedule.call_args[0][1] == str(tmp_path.resolve())
        observer.start.assert_called_once()

    @patch('phamlc.watcher.Observer')
    def test_missing_directory_not_scheduled(self, mock_observer_class, tmp_path):
        observer = mock_observer_class.return_value
        run_watcher({tmp_path / 'gone' / 'a.haml': tmp_path / 'a.php'}, set(), HamlCompiler())
        observer.schedule.assert_not_called()
        observer.start.assert_not_called()

    @patch('phamlc.watcher.Observer')
    def test_keyboard_interrupt_stops_observer(self, mock_observer_class, tmp_path):
        observer = mock_observer_class.return_value
        observer.is_alive.return_value = True
        observer.join.side_effect = [KeyboardInterrupt, None]
        src = tmp_path / 'index.haml'
        src.write_text("%p", encoding='utf-8')

        run_watcher({src: tmp_path / 'index.php'}, set(), HamlCompiler())

        observer.stop.assert_called_once()
