import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Dict, Optional, Set, Tuple

import yaml

from .compiler import HamlCompiler
from .options import CompilerOptions
from .watcher import run_watcher, trigger_recompile

logger = logging.getLogger('phamlc')

RELOAD_DELAY = 3


def load_config(config_path: Path, base_path: Path = Path('.')) -> Tuple[Dict[Path, Path], Set[Path], CompilerOptions]:
    """
    Reads the YAML config:
      write: [{src: ..., dst: ...}]   files to compile
      watch: [glob, ...]              extra files whose changes trigger a rebuild
      options: {...}                  compiler options (format, style, escapeOutput, ...)
    """
    with open(config_path, "r", encoding='utf-8') as f:
        cfg = yaml.safe_load(f) or {}
    if 'write' not in cfg:
        raise ValueError(f"{config_path}: missing 'write' section")
    write_pairs = {base_path / to_write['src']: base_path / to_write['dst'] for to_write in cfg['write']}
    watch_paths = {watch_path for watch_path_str in cfg.get('watch') or [] for watch_path in base_path.glob(watch_path_str)}
    options = CompilerOptions.from_mapping(cfg.get('options'))
    return write_pairs, watch_paths, options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
                        prog='phamlc',
                        description='Compiles Haml templates to PHP/HTML and recompiles them on change',
                        epilog='The config file lists src/dst pairs under "write" and compiler options under "options".')
    parser.add_argument('config', type=Path)
    parser.add_argument('--once', action='store_true', help='compile once and exit instead of watching')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug messages')
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')

    if args.once:
        try:
            write_pairs, _, options = load_config(args.config)
        except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
            logger.error("Error: %s", e)
            return 2
        written = trigger_recompile(write_pairs, HamlCompiler(options))
        return 0 if written == len(write_pairs) else 1

    while True:
        try:
            write_pairs, watch_paths, options = load_config(args.config)
            compiler = HamlCompiler(options)
            trigger_recompile(write_pairs, compiler)
            run_watcher(write_pairs, watch_paths, compiler)
            return 0
        except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
            # HamlError is a ValueError: bad options land here too
            logger.error("Error: %s", e)
            logger.warning("Please check your configuration and try again, attempting to reload in %s seconds...",
                           RELOAD_DELAY)
            time.sleep(RELOAD_DELAY)
            continue


if __name__ == '__main__':
    sys.exit(main())
