import logging
from pathlib import Path
from typing import Dict, Iterable, Set

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .compiler import HamlCompiler
from .exceptions import HamlError

logger = logging.getLogger(__name__)


def trigger_recompile(write_pairs: Dict[Path, Path], compiler: HamlCompiler) -> int:
    """Compiles every src to its dst. Returns the number of files written; errors are logged."""
    written = 0
    for src, dst in write_pairs.items():
        try:
            output = compiler.compile_file(src)
        except HamlError as e:
            logger.error("Failed to compile %s: %s", src, e)
            continue
        except OSError as e:
            logger.error("Could not read %s: %s", src, e)
            continue
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text(output, encoding='utf-8')
        logger.info("Compiled %s -> %s", src, dst)
        written += 1
    return written


class ChangeHandler(FileSystemEventHandler):
    def __init__(self, files_to_watch: Iterable[Path], write_pairs: Dict[Path, Path], compiler: HamlCompiler):
        self.files_to_watch = {Path(x).resolve() for x in files_to_watch}  # sources + extra watched files
        self.write_pairs = write_pairs
        self.compiler = compiler
        logger.info("Handler initialized. Monitoring for changes...")

    def _is_watched(self, path: str) -> bool:
        return Path(path).resolve() in self.files_to_watch

    def on_modified(self, event):
        if event.is_directory:
            return
        if self._is_watched(event.src_path):
            logger.info("Detected modification in: %s", event.src_path)
            trigger_recompile(self.write_pairs, self.compiler)
        # else: file modified is not in our watch list, ignore.

    def on_created(self, event):
        # editors that save by replacing the file emit created, not modified
        self.on_modified(event)


def run_watcher(write_pairs: Dict[Path, Path], watch_paths: Set[Path], compiler: HamlCompiler):
    """Sets up and runs the watchdog observer."""
    files_to_watch = set(write_pairs.keys()) | set(watch_paths)
    dirs_to_watch = {p.resolve().parent for p in files_to_watch}

    if not dirs_to_watch:
        logger.error("No valid directories provided to watch.")
        return

    event_handler = ChangeHandler(files_to_watch, write_pairs, compiler)
    observer = Observer()

    scheduled_count = 0
    for dir_path in dirs_to_watch:
        if not dir_path.is_dir():
            logger.warning("Directory '%s' does not exist. Cannot watch.", dir_path)
            continue
        # recursive=False: only events directly within this directory
        observer.schedule(event_handler, str(dir_path), recursive=False)
        scheduled_count += 1
        logger.info("Scheduled watcher for directory: %s", dir_path)

    if scheduled_count == 0:
        logger.error("No watchers were successfully scheduled. Exiting.")
        return

    observer.start()
    logger.info("Watching for file changes in %d director%s. Press Ctrl+C to stop.",
                scheduled_count, 'y' if scheduled_count == 1 else 'ies')

    try:
        while observer.is_alive():
            observer.join(timeout=1)
    except KeyboardInterrupt:
        logger.info("Stopping watcher (Ctrl+C pressed)...")
    finally:
        if observer.is_alive():
            observer.stop()
        observer.join()
        logger.info("Watcher stopped completely.")

