"""
Repository Browser CLI — inspect the aggregated repository from a terminal.

Commands:
- repobrowser ls [PATH]          — Merged listing of a path (folders first)
- repobrowser cat PATH [-o FILE] — Write the first file resolving to PATH
- repobrowser check              — Validate config and count each provider's filesystems
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from typing import Optional, Tuple

from repobrowser.engine.config import BrowserConfig, load_config
from repobrowser.engine.context import RequestContext
from repobrowser.engine.errors import RepoBrowserError
from repobrowser.engine.logging import init_logging
from repobrowser.engine.translation import TranslationSet, load_translation_set
from repobrowser.fs.registry import FilesystemRegistry, build_registry

logger = logging.getLogger("repobrowser.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="repobrowser",
        description="Repository Browser — aggregated p2 update sites",
    )
    parser.add_argument(
        "--config", default=None, help="Path to repobrowser.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # repobrowser ls
    ls_parser = subparsers.add_parser("ls", help="List a path across all sources")
    ls_parser.add_argument("path", nargs="?", default="", help="Path to list (default: root)")

    # repobrowser cat
    cat_parser = subparsers.add_parser("cat", help="Write a file's content")
    cat_parser.add_argument("path", help="Path of the file")
    cat_parser.add_argument("--output", "-o", help="Write to FILE instead of stdout")

    # repobrowser check
    subparsers.add_parser("check", help="Validate configuration and providers")

    args = parser.parse_args(argv)

    if args.command == "ls":
        return cmd_ls(args)
    elif args.command == "cat":
        return cmd_cat(args)
    elif args.command == "check":
        return cmd_check(args)
    else:
        parser.print_help()
        return 0


def _bootstrap(config_path: Optional[str]) -> Tuple[BrowserConfig, TranslationSet, FilesystemRegistry]:
    config = load_config(config_path)
    init_logging(config.logging.directory, config.logging.level)
    translator = load_translation_set(
        config.translations.file, config.translations.default_language
    )
    return config, translator, build_registry(config, translator)


def cmd_ls(args: argparse.Namespace) -> int:
    """Print the merged listing of a path."""
    try:
        config, _, registry = _bootstrap(args.config)
        with RequestContext(preferred_language=config.translations.default_language) as ctx:
            for entry in registry.merged_listing(ctx, args.path):
                marker = "d" if entry.is_folder else "-"
                size = "" if entry.is_folder else str(entry.size)
                print(f"{marker} {size:>12}  {entry.name}")
    except RepoBrowserError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1
    return 0


def cmd_cat(args: argparse.Namespace) -> int:
    """Write the first file resolving to a path."""
    try:
        config, _, registry = _bootstrap(args.config)
        with RequestContext(preferred_language=config.translations.default_language) as ctx:
            resource = registry.find_resource(ctx, args.path)
            if resource is None or resource.is_folder:
                print(f"Not found: {args.path}", file=sys.stderr)
                return 1
            with resource.open() as stream:
                if args.output:
                    with open(args.output, "wb") as out:
                        shutil.copyfileobj(stream, out)
                else:
                    shutil.copyfileobj(stream, sys.stdout.buffer)
                    sys.stdout.flush()
    except RepoBrowserError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """
    Validate configuration and run every provider once:
    1. Load and validate repobrowser.yaml
    2. Build the registry from the configured providers
    3. Report how many filesystems each provider produces
    """
    try:
        config, translator, registry = _bootstrap(args.config)
    except RepoBrowserError as e:
        print(f"[ERROR] {e.message}")
        return 1

    print(f"[OK] Site: {config.site.name} ({config.site.environment})")
    print(f"[OK] Translations: {len(list(translator.keys()))} keys")

    errors = 0
    with RequestContext(preferred_language=config.translations.default_language) as ctx:
        for provider in registry.providers:
            try:
                filesystems = [ctx.register_closable(fs) for fs in provider.get_filesystems(ctx)]
            except RepoBrowserError as e:
                print(f"  [ERROR] {provider.name}: {e.message}")
                errors += 1
                continue
            names = ", ".join(fs.name for fs in filesystems)
            print(f"  [OK] {provider.name}: {len(filesystems)} filesystem(s) {names}".rstrip())

    if errors:
        print(f"\n{errors} provider(s) failed")
        return 1
    print("\nAll providers OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
