"""Command-line interface entry point."""

import sys

from cyclopts import App

from .backend import ffconform

app = App(help="Conform media files to a container, codec and quality policy.")
app.default(ffconform)


def main(argv: list[str] | None = None) -> int:
    """Run the ffconform CLI."""
    argv = sys.argv[1:] if argv is None else argv
    return app(argv)


if __name__ == "__main__":
    raise SystemExit(main())
