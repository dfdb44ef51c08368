# Copyright 2025 Ralph Lemke
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tinker notebook command-line interface."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import NotebookConfig, load_config
from .entities import ExecutionResult, format_timestamp
from .errors import CircularReferenceError
from .formatting.exporters import EXPORTERS, exporter_for
from .session import NotebookSession

# Known subcommands for routing
_SUBCOMMANDS = {"blocks", "format", "refs", "state"}


def _build_blocks_parser(parser: argparse.ArgumentParser) -> None:
    """Add blocks-specific arguments to *parser*."""
    parser.add_argument("input", help="Markdown notebook file")

    parser.add_argument(
        "--workspace",
        metavar="DIR",
        help="Workspace holding the block state (default: the file's directory)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Output fragments as JSON",
    )


def _build_format_parser(parser: argparse.ArgumentParser) -> None:
    """Add format-specific arguments to *parser*."""
    parser.add_argument(
        "input",
        nargs="?",
        help="File holding raw execution output (reads from stdin if not provided)",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        metavar="N",
        help="Deepest nesting level to expand",
    )

    parser.add_argument(
        "--no-highlight",
        action="store_true",
        help="Disable ANSI syntax highlighting",
    )

    parser.add_argument(
        "--line-numbers",
        action="store_true",
        help="Number every rendered line",
    )

    parser.add_argument(
        "--collapsible",
        action="store_true",
        help="Wrap output in collapsible section markers",
    )

    parser.add_argument(
        "--export",
        choices=sorted(EXPORTERS),
        default=None,
        help="Print the decoded value in an export format instead of rendering it",
    )


def _build_refs_parser(parser: argparse.ArgumentParser) -> None:
    """Add refs-specific arguments to *parser*."""
    parser.add_argument("input", help="Markdown notebook file")

    parser.add_argument(
        "--id",
        required=True,
        dest="block_id",
        metavar="ID",
        help="Fragment id or explicit name",
    )

    parser.add_argument(
        "--workspace",
        metavar="DIR",
        help="Workspace holding the block state (default: the file's directory)",
    )


def _build_state_parser(parser: argparse.ArgumentParser) -> None:
    """Add state-specific arguments to *parser*."""
    parser.add_argument(
        "--workspace",
        default=".",
        metavar="DIR",
        help="Workspace holding the block state (default: current directory)",
    )

    parser.add_argument(
        "--clear",
        action="store_true",
        help="Remove all recorded states and results",
    )


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments shared by all subcommands."""
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Path to config file (JSON). "
        "Defaults to tinker-notebook.config.json in cwd or ~/.tinker-notebook/",
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )

    parser.add_argument(
        "--log-file",
        default=None,
        metavar="FILE",
        help="Log to file instead of stderr",
    )


def _configure_logging(parsed: argparse.Namespace) -> None:
    """Set up logging from parsed CLI args."""
    log_handlers: list[logging.Handler] = []
    if parsed.log_file:
        log_handlers.append(logging.FileHandler(parsed.log_file))
    else:
        log_handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=getattr(logging, parsed.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=log_handlers,
    )


def _load(parsed: argparse.Namespace) -> NotebookConfig | None:
    try:
        return load_config(parsed.config)
    except (OSError, ValueError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return None


def _read_notebook(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {path}: {e}", file=sys.stderr)
    return None


def _open_session(
    parsed: argparse.Namespace, config: NotebookConfig, default_workspace: str
) -> NotebookSession | None:
    workspace = parsed.workspace or default_workspace
    try:
        session = NotebookSession.from_config(config, workspace)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    error = session.load()
    if error is not None:
        print(f"Warning: {error}", file=sys.stderr)
    return session


# =========================================================================
# Blocks handler
# =========================================================================


def _handle_blocks(parsed: argparse.Namespace) -> int:
    """Execute the blocks subcommand."""
    config = _load(parsed)
    if config is None:
        return 1
    text = _read_notebook(parsed.input)
    if text is None:
        return 1

    session = _open_session(parsed, config, str(Path(parsed.input).resolve().parent))
    if session is None:
        return 1

    fragments = session.parse(text)
    rows = []
    for fragment in fragments:
        entry = session.get_state(fragment.id)
        rows.append(
            {
                "id": fragment.id,
                "name": fragment.explicit_name,
                "kind": fragment.kind,
                "tag": fragment.tag,
                "start_line": fragment.start_line + 1,
                "end_line": fragment.end_line + 1,
                "state": session.store.get_lifecycle(fragment.id),
                "last_execution_time": (
                    format_timestamp(entry.last_execution_time)
                    if entry and entry.last_execution_time
                    else None
                ),
            }
        )

    if parsed.as_json:
        print(json.dumps(rows, indent=2))
        return 0

    if not rows:
        print("No code blocks found.", file=sys.stderr)
        return 0
    for row in rows:
        print(
            f"  {row['id']}  kind={row['kind']}  "
            f"lines={row['start_line']}-{row['end_line']}  state={row['state']}"
        )
    return 0


# =========================================================================
# Format handler
# =========================================================================


def _handle_format(parsed: argparse.Namespace) -> int:
    """Execute the format subcommand."""
    config = _load(parsed)
    if config is None:
        return 1

    if parsed.input:
        text = _read_notebook(parsed.input)
        if text is None:
            return 1
    else:
        text = sys.stdin.read()

    options = config.formatting.to_options()
    if parsed.max_depth is not None:
        options.max_depth = parsed.max_depth
    if parsed.no_highlight:
        options.highlight_syntax = False
    if parsed.line_numbers:
        options.show_line_numbers = True
    if parsed.collapsible:
        options.collapsible = True

    session = NotebookSession(options=options)
    formatted = session.render(ExecutionResult(output=text))

    if parsed.export:
        print(exporter_for(parsed.export).export(formatted.data))
    else:
        print(formatted.text)
    return 0


# =========================================================================
# Refs handler
# =========================================================================


def _handle_refs(parsed: argparse.Namespace) -> int:
    """Execute the refs subcommand."""
    config = _load(parsed)
    if config is None:
        return 1
    text = _read_notebook(parsed.input)
    if text is None:
        return 1

    session = _open_session(parsed, config, str(Path(parsed.input).resolve().parent))
    if session is None:
        return 1

    fragment = next(
        (f for f in session.parse(text) if f.matches(parsed.block_id)),
        None,
    )
    if fragment is None:
        print(f"Error: No code block '{parsed.block_id}' in {parsed.input}", file=sys.stderr)
        return 1

    references = session.resolver.detect_references(fragment.content)
    print(f"Block: {fragment.id}")
    if not references:
        print("References: none")
    else:
        print("References:")
        for ref_id in references:
            status = "stored" if session.get_result(ref_id) is not None else "missing"
            print(f"  {ref_id}  ({status})")

    try:
        session.resolver.check(fragment.id, fragment.content)
    except CircularReferenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Content:")
    print(session.process_content(fragment.content), end="")
    return 0


# =========================================================================
# State handler
# =========================================================================


def _handle_state(parsed: argparse.Namespace) -> int:
    """Execute the state subcommand."""
    config = _load(parsed)
    if config is None:
        return 1

    session = _open_session(parsed, config, ".")
    if session is None:
        return 1

    if parsed.clear:
        session.store.clear_all()
        error = session.save()
        if error is not None:
            print(f"Error: {error}", file=sys.stderr)
            return 1
        print("Cleared all block states.", file=sys.stderr)
        return 0

    states = session.get_all_states()
    if not states:
        print("No block states recorded.", file=sys.stderr)
        return 0
    for block_id, entry in states.items():
        when = format_timestamp(entry.last_execution_time) if entry.last_execution_time else "-"
        print(f"  {block_id}  state={entry.state}  last_run={when}")
    return 0


# =========================================================================
# Main entry point
# =========================================================================

_HANDLERS = {
    "blocks": (_build_blocks_parser, _handle_blocks, "List code blocks in a notebook"),
    "format": (_build_format_parser, _handle_format, "Classify and render raw output"),
    "refs": (_build_refs_parser, _handle_refs, "Show and resolve result references"),
    "state": (_build_state_parser, _handle_state, "List or clear persisted block states"),
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the notebook CLI.

    Supports subcommands ``blocks``, ``format`` (default), ``refs`` and
    ``state``. If the first argument is not a known subcommand, ``format``
    is assumed.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    argv = args if args is not None else sys.argv[1:]

    subcommand = "format"
    remaining = list(argv)
    if remaining and remaining[0] in _SUBCOMMANDS:
        subcommand = remaining[0]
        remaining = remaining[1:]

    build, handle, description = _HANDLERS[subcommand]
    parser = argparse.ArgumentParser(
        prog=f"tinker-notebook {subcommand}",
        description=description,
    )
    build(parser)
    _add_common_args(parser)
    parsed = parser.parse_args(remaining)
    _configure_logging(parsed)
    return handle(parsed)


if __name__ == "__main__":
    sys.exit(main())
