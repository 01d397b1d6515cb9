"""Demo entry point: an output pane above (or beside) an editor pane.

Lines submitted in the editor are echoed into the output pane until escape
is pressed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from termpanes.colors import Color, StyledSpan
from termpanes.config import PaneSettings
from termpanes.errors import SurfaceError
from termpanes.surface import TerminalSurface
from termpanes.ui import PaneUI


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="termpanes",
        description="Split the terminal and echo lines typed into an editor pane",
    )
    axis = parser.add_mutually_exclusive_group()
    axis.add_argument(
        "--vertical", dest="axis", action="store_const", const="vertical",
        help="Place the editor pane to the right of the output pane",
    )
    axis.add_argument(
        "--horizontal", dest="axis", action="store_const", const="horizontal",
        help="Place the editor pane below the output pane (default)",
    )
    parser.set_defaults(axis="horizontal")
    parser.add_argument(
        "--offset", type=int, default=-2,
        help="Split position; negative values count from the right or bottom edge",
    )
    parser.add_argument("--prompt", default="> ", help="Editor prompt")
    parser.add_argument("--log-file", help="Write debug logs to this file")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    settings = PaneSettings.from_env()
    ui = PaneUI(TerminalSurface(write_log_path=settings.write_log_path), settings)

    async with ui:
        if not ui.root.split(args.axis, args.offset):
            sys.exit(f"termpanes: cannot split the terminal {args.axis}ly at {args.offset}")
        editor_pane = ui.root.second
        assert editor_pane is not None
        editor_pane.make_editable([StyledSpan(args.prompt, Color.GREEN)])
        ui.focus_pane(editor_pane)
        ui.refresh()
        listener = ui.start()

        while True:
            reader = asyncio.ensure_future(editor_pane.get_line())
            done, _ = await asyncio.wait(
                {reader, listener}, return_when=asyncio.FIRST_COMPLETED
            )
            if listener in done:
                reader.cancel()
                listener.result()
                return
            line = reader.result()
            if line is None:
                return
            ui.root.add_line([StyledSpan("| ", Color.DARK_GRAY), StyledSpan(line)])
            ui.root.refresh()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    try:
        asyncio.run(run(args))
    except SurfaceError as exc:
        print(f"termpanes: {exc}: {exc.__cause__}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
