#!/usr/bin/env python3
"""
treeops CLI: command line interface for the file-tree engine.
Exposes stat, walk, hash, duplicate search, streamed copy, permissions, text
analysis, regex search and directory watching on top of the same async core.
Duplicate removal is always safe: files are moved to the system trash, never erased.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import asyncio
import json
import logging
import os
import sys
import time
from typing import Any, List, NoReturn, Optional

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    from send2trash import send2trash
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

try:
    import watchdog
except ImportError:
    _MISSING_DEPS.append("watchdog")

try:
    import chardet
except ImportError:
    _MISSING_DEPS.append("chardet")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    print("\nOr install the package with its dependencies:", file=sys.stderr)
    print("   pip install treeops", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from treeops.aliases import ACCESS_CHOICES, ALGORITHM_ALIASES, ALGORITHM_CHOICES, ALGORITHM_HELP_TEXT, EPILOG_TEXT
from treeops.commands import DuplicateScanCommand
from treeops.config import Engine, EngineConfig, build_engine
from treeops.core.models import ChangeEvent, DuplicateScanParams, FingerprintGroup
from treeops.core.paths import resolve
from treeops.core.stat_provider import mode_to_permissions
from treeops.errors import FileIOError, InvalidArgumentError, TreeOpsError
from treeops.services.analysis_service import AnalysisService
from treeops.services.duplicate_service import DuplicateService
from treeops.services.file_service import FileService
from treeops.services.permission_service import PermissionService
from treeops.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.json_output: bool = False
        self.engine: Optional[Engine] = None

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="treeops",
            description="treeops: async file-tree operations: walk, hash, dedupe, stream, watch",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Global options
        parser.add_argument(
            "--json",
            action="store_true",
            dest="json_output",
            help="Print results as JSON records"
        )
        parser.add_argument(
            "--config", "-c",
            type=str,
            metavar='FILE',
            help="TOML file with a [treeops] table of engine settings"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show debug logging, statistics and progress"
        )

        commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

        stat_cmd = commands.add_parser("stat", help="Describe a path")
        stat_cmd.add_argument("path", help="File, directory or symlink to describe")

        walk_cmd = commands.add_parser("walk", help="List every file below a directory")
        walk_cmd.add_argument("root", help="Directory to walk")
        walk_cmd.add_argument(
            "--pattern", "-p",
            type=str,
            default=None,
            help="Regular expression matched against file basenames"
        )

        hash_cmd = commands.add_parser("hash", help="Print content digests of files",
                                       formatter_class=argparse.RawTextHelpFormatter)
        hash_cmd.add_argument("paths", nargs="+", help="Files to hash")
        hash_cmd.add_argument(
            "--algorithm", "-a",
            choices=ALGORITHM_CHOICES,
            default=None,
            type=str,
            help=ALGORITHM_HELP_TEXT
        )

        dupes_cmd = commands.add_parser("dupes", help="Find files with identical content",
                                        formatter_class=argparse.RawTextHelpFormatter)
        dupes_cmd.add_argument("root", help="Directory to scan for duplicates")
        dupes_cmd.add_argument(
            "--algorithm", "-a",
            choices=ALGORITHM_CHOICES,
            default=None,
            type=str,
            help=ALGORITHM_HELP_TEXT
        )
        dupes_cmd.add_argument(
            "--pattern", "-p",
            type=str,
            default=None,
            help="Regular expression matched against file basenames"
        )
        dupes_cmd.add_argument(
            "--keep-one",
            action="store_true",
            help="Keep the first file of each group and move the rest to trash. "
                 "Always shows preview before deletion for safety."
        )
        dupes_cmd.add_argument(
            "--force",
            action="store_true",
            help="Skip confirmation prompt when used with --keep-one (for automation/scripts)"
        )

        copy_cmd = commands.add_parser("copy", help="Stream-copy a file with bounded memory")
        copy_cmd.add_argument("source", help="File to copy")
        copy_cmd.add_argument("dest", help="Destination file (parent directories are created)")

        perms_cmd = commands.add_parser("perms", help="Show or change permission bits")
        perms_cmd.add_argument("path", help="Path to inspect")
        perms_cmd.add_argument(
            "--set",
            dest="set_mode",
            type=str,
            metavar='MODE',
            default=None,
            help="Octal permission bits to apply, e.g. 644"
        )
        perms_cmd.add_argument(
            "--make-executable",
            action="store_true",
            help="Add execute permission for owner, group and others"
        )
        perms_cmd.add_argument(
            "--check",
            choices=ACCESS_CHOICES,
            default=None,
            help="Report whether this process has the given access"
        )

        analyze_cmd = commands.add_parser("analyze", help="Line, word and character counts of a text file")
        analyze_cmd.add_argument("path", help="Text file to analyze")

        search_cmd = commands.add_parser("search", help="Search files for a regular expression")
        search_cmd.add_argument("root", help="File or directory to search")
        search_cmd.add_argument("pattern", help="Regular expression to look for")
        search_cmd.add_argument(
            "--no-recursive",
            action="store_true",
            help="Only search files directly inside the directory"
        )

        watch_cmd = commands.add_parser("watch", help="Print change events for a directory")
        watch_cmd.add_argument("path", help="Directory to watch")
        watch_cmd.add_argument(
            "--recursive", "-r",
            action="store_true",
            help="Include events from subdirectories"
        )
        watch_cmd.add_argument(
            "--timeout", "-t",
            type=float,
            default=None,
            metavar='SECONDS',
            help="Stop after this many seconds (default: run until Ctrl+C)"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.command != "dupes":
            return
        if args.force and not args.keep_one:
            self.error_exit("--force can only be used with --keep-one")

        # Prevent interactive confirmation in non-TTY environments
        if args.keep_one and not args.force:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force flag to proceed without confirmation when piping output or running in scripts."
                )

    def algorithm_for(self, args: argparse.Namespace) -> str:
        if args.algorithm is None:
            return self.engine.config.default_algorithm
        return ALGORITHM_ALIASES[args.algorithm]

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files found...")
        sys.stderr.flush()

    def emit(self, data: Any) -> None:
        print(json.dumps(data, indent=2, ensure_ascii=False))

    # ---- commands ----

    async def cmd_stat(self, args: argparse.Namespace) -> None:
        descriptor = await self.engine.stat.stat(args.path)
        if self.json_output:
            self.emit(descriptor.to_dict())
            return
        print(f"Path:     {descriptor.path}")
        print(f"Kind:     {descriptor.kind.value}")
        print(f"Size:     {descriptor.size} ({ConvertUtils.bytes_to_human(descriptor.size)})")
        print(f"Mode:     {descriptor.octal_mode} ({descriptor.permissions})")
        print(f"Created:  {ConvertUtils.datetime_to_human(descriptor.created)}")
        print(f"Modified: {ConvertUtils.datetime_to_human(descriptor.modified)}")
        print(f"Accessed: {ConvertUtils.datetime_to_human(descriptor.accessed)}")

    async def cmd_walk(self, args: argparse.Namespace) -> None:
        paths = [p async for p in self.engine.walker.walk(args.root, args.pattern)]
        if self.json_output:
            self.emit(paths)
            return
        for path in paths:
            print(path)
        if self.verbose:
            print(f"\n{len(paths)} files", file=sys.stderr)

    async def cmd_hash(self, args: argparse.Namespace) -> None:
        algorithm = self.algorithm_for(args)
        results = []
        for path in args.paths:
            digest = await self.engine.hasher.digest(path, algorithm)
            results.append({"path": resolve(path), "algorithm": algorithm, "digest": digest})
        if self.json_output:
            self.emit(results)
            return
        for item in results:
            print(f"{item['digest']}  {item['path']}")

    async def cmd_dupes(self, args: argparse.Namespace) -> None:
        params = DuplicateScanParams(
            root_dir=resolve(args.root),
            algorithm=self.algorithm_for(args),
            pattern=args.pattern,
        )
        if not self.quiet and not self.json_output:
            print(f"Scanning directory: {params.root_dir}")

        command = DuplicateScanCommand(self.engine)
        groups, stats = await command.execute(
            params,
            progress_callback=self.progress_callback if self.verbose else None,
        )
        if self.verbose:
            sys.stderr.write("\n")
            print(stats.print_summary(), file=sys.stderr)

        if args.keep_one:
            await self.execute_keep_one(groups, force=args.force)
        elif self.json_output:
            self.emit({"groups": [g.to_dict() for g in groups], "stats": stats.to_dict()})
        else:
            self.output_results(groups)

    def output_results(self, groups: List[FingerprintGroup]) -> None:
        """Output duplicate groups as plain text in encounter order."""
        if self.quiet:
            return

        if not groups:
            print("No duplicate groups found.")
            return

        total_files = sum(len(g.paths) for g in groups)
        print(f"\nFound {len(groups)} duplicate groups ({total_files} files)")

        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.size)
            print(f"\n📁 Group {idx} | Size: {size_str} | Files: {len(group.paths)} | {group.digest[:16]}")
            for path in group.paths:
                print(f"   {path}")

    async def execute_keep_one(self, groups: List[FingerprintGroup], force: bool = False) -> None:
        """Keep one file per group, move the rest to trash. Always shows preview before deletion."""
        if not groups:
            if not self.quiet:
                print("No duplicate groups found.")
            return

        paths_to_delete = DuplicateService.keep_only_one_path_per_group(groups)
        space_saved_str = ConvertUtils.bytes_to_human(
            DuplicateService.calculate_space_savings(groups, paths_to_delete)
        )

        # Always show deletion preview before action
        print()
        for idx, group in enumerate(groups, 1):
            print(f"📁 Group {idx} | Size: {ConvertUtils.bytes_to_human(group.size)} | Files: {len(group.paths)}")
            print("-" * 60)
            print(f"   [KEEP] {group.paths[0]}")
            for path in group.paths[1:]:
                print(f"   [DEL]  {path}")
            print()

        print("=" * 60)
        print(f"Summary: Keep 1 file per group ({len(groups)} files preserved, "
              f"{len(paths_to_delete)} files deleted)")
        print(f"Total space saved: {space_saved_str}")
        print()

        if force:
            print("⚠️  WARNING: --force flag skips confirmation. Proceeding with deletion...")
        else:
            response = await asyncio.to_thread(
                input, f"Are you sure you want to move {len(paths_to_delete)} files to trash? [y/N]: "
            )
            if response.strip().lower() not in ("y", "yes"):
                print("Deletion cancelled by user.")
                return

        # Continue on individual file errors
        print(f"\nMoving {len(paths_to_delete)} files to trash...")
        try:
            await FileService.move_multiple_to_trash(
                paths_to_delete,
                progress_callback=self.trash_progress if self.verbose else None,
            )
        except FileIOError as e:
            print("\n⚠️  Partial success: some files were not moved to trash.")
            print(e)
            return
        print(f"✅ Successfully moved {len(paths_to_delete)} files to trash.")
        print(f"Total space saved: {space_saved_str}")

    @staticmethod
    def trash_progress(current: int, total: int, path: str) -> None:
        print(f"  [{current}/{total}] {os.path.basename(path)}")

    async def cmd_copy(self, args: argparse.Namespace) -> None:
        copied = await self.engine.streams.copy(args.source, args.dest)
        if self.json_output:
            self.emit({"source": resolve(args.source), "dest": resolve(args.dest), "bytes": copied})
        elif not self.quiet:
            print(f"Copied {copied} bytes ({ConvertUtils.bytes_to_human(copied)}) to {resolve(args.dest)}")

    async def cmd_perms(self, args: argparse.Namespace) -> None:
        if args.set_mode is not None:
            try:
                mode = int(args.set_mode, 8)
            except ValueError as e:
                raise InvalidArgumentError(f"Invalid octal mode: '{args.set_mode}'") from e
            if not 0 <= mode <= 0o777:
                raise InvalidArgumentError(f"Mode out of range (000-777): '{args.set_mode}'")
            await PermissionService.set_permissions(args.path, mode_to_permissions(mode))
        if args.make_executable:
            await PermissionService.make_executable(args.path)

        permissions = await PermissionService.get_permissions(args.path)
        result = {"path": resolve(args.path), "permissions": permissions.to_dict()}
        if args.check:
            result["access"] = {args.check: await PermissionService.check_access(args.path, args.check)}

        if self.json_output:
            self.emit(result)
            return
        print(f"{permissions}  {result['path']}")
        for mode_name, allowed in result.get("access", {}).items():
            print(f"{mode_name}: {'yes' if allowed else 'no'}")

    async def cmd_analyze(self, args: argparse.Namespace) -> None:
        analysis = await AnalysisService.analyze_text_file(args.path)
        if self.json_output:
            self.emit(analysis.to_dict())
            return
        print(f"Lines:      {analysis.line_count}")
        print(f"Words:      {analysis.word_count}")
        print(f"Characters: {analysis.char_count}")
        print(f"Encoding:   {analysis.encoding}")
        print(f"MIME type:  {analysis.mime_type}")

    async def cmd_search(self, args: argparse.Namespace) -> None:
        if os.path.isfile(args.root):
            matches = await AnalysisService.search_in_file(args.root, args.pattern)
        else:
            matches = await AnalysisService.search_in_files(
                args.root, args.pattern, recursive=not args.no_recursive
            )
        if self.json_output:
            self.emit([m.to_dict() for m in matches])
            return
        for match in matches:
            print(f"{match.file}:{match.line}: {match.content}")
        if self.verbose:
            print(f"\n{len(matches)} matches", file=sys.stderr)

    async def cmd_watch(self, args: argparse.Namespace) -> None:
        async with self.engine.new_watcher() as watcher:
            async with watcher.subscribe() as subscription:
                handle = await watcher.watch(args.path, recursive=args.recursive)
                if not self.quiet:
                    print(f"Watching {handle.path} (Ctrl+C to stop)...", file=sys.stderr)
                try:
                    async with asyncio.timeout(args.timeout):
                        async for event in subscription:
                            self.print_event(event)
                except TimeoutError:
                    logger.debug(f"Watch timeout reached after {args.timeout}s")
                if subscription.dropped:
                    self.warning(f"{subscription.dropped} events dropped (slow consumer)")

    def print_event(self, event: ChangeEvent) -> None:
        if self.json_output:
            print(json.dumps(event.to_dict(), ensure_ascii=False), flush=True)
        else:
            print(f"{ConvertUtils.datetime_to_human(event.timestamp)}  "
                  f"{event.kind.value:<8}  {event.path}", flush=True)

    # ---- plumbing ----

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    @staticmethod
    def report_error(error: TreeOpsError) -> None:
        print(f"❌ Error [{error.kind.value}]: {error}", file=sys.stderr)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parse arguments, build the engine and dispatch to the subcommand."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.json_output = args.json_output

        if self.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        self.validate_args(args)
        config = EngineConfig.from_toml(args.config) if args.config else EngineConfig()
        self.engine = build_engine(config)

        handler = getattr(self, f"cmd_{args.command}")
        asyncio.run(handler(args))

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point. Returns the process exit code."""
    app = CLIApplication()
    try:
        app.run(argv)
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        return 130
    except TreeOpsError as e:
        app.report_error(e)
        return 1
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
