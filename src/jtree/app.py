"""Terminal JSON tree viewer application."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Header, Static

from jtree.errors import EmptyDocument, ParseError
from jtree.state import ViewerConfig, ViewerState
from jtree.widget import JsonTreeView

SAMPLE_JSON = """\
{
    "name": "jtree",
    "description": "Browse JSON documents as a collapsible tree",
    "keys": {
        "move": ["j", "k", "ctrl+d", "ctrl+u", "g", "G"],
        "fold": ["h", "l", "space", "M", "R"],
        "search": ["/", "n", "N", "escape"]
    },
    "limits": {
        "max_tokens": 2048,
        "indent": 4,
        "case_sensitive": false,
        "default_file": null
    },
    "scores": [100, 200, 300]
}"""


class JsonTreeApp(App):
    """TUI app that wraps the JsonTreeView widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #tree {
        height: 1fr;
        border: solid $accent;
    }
    #help-bar {
        height: auto;
        max-height: 3;
        padding: 0 1;
        color: $text-muted;
        background: $surface;
        border-top: solid $accent 50%;
    }
    """

    TITLE = "JSON Tree"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, state: ViewerState, file_path: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self.state = state
        self.file_path = file_path

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield JsonTreeView(self.state, id="tree")
        yield Static(
            "[b]Move:[/b] j k  ctrl+d ctrl+u  g G   "
            "[b]Fold:[/b] h l  space  M R   "
            "[b]Search:[/b] / n N  Esc [dim]clear[/]   q [dim]quit[/]",
            id="help-bar",
        )

    def on_mount(self) -> None:
        self.sub_title = self.file_path or "[sample]"
        self.query_one("#tree").focus()

    def on_json_tree_view_quit(self, event: JsonTreeView.Quit) -> None:
        self.exit()


def _read_source(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise OSError(f"file not found: {file_path}") from None
    except UnicodeDecodeError as exc:
        raise OSError(f"{file_path}: not valid UTF-8 ({exc.reason})") from None


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jtree",
        description="Browse a JSON document as a collapsible tree",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="",
        help="JSON file to open (a sample document is shown when omitted)",
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=ViewerConfig.max_tokens,
        help="token limit; larger documents are truncated (default: %(default)s)",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=ViewerConfig.indent_size,
        help="columns per nesting level (default: %(default)s)",
    )
    parser.add_argument(
        "--log-file",
        default="",
        help="write debug logging to this file",
    )
    args = parser.parse_args(argv)

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    file_path: str = args.file
    config = ViewerConfig(
        indent_size=max(0, args.indent),
        max_tokens=max(1, args.max_tokens),
        max_lines=max(1, args.max_tokens),
    )
    try:
        source = _read_source(file_path) if file_path else SAMPLE_JSON
        state = ViewerState.from_text(source, config)
    except (OSError, ParseError, EmptyDocument) as exc:
        print(f"jtree: {exc}", file=sys.stderr)
        sys.exit(1)

    app = JsonTreeApp(state, file_path=file_path)
    app.run()


if __name__ == "__main__":
    main()
