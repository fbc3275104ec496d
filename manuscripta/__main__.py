"""Entry point for running manuscripta as a module or installed script.

Usage:
    manuscripta / python -m manuscripta         → web app (uvicorn)
    manuscripta <command> ... / python -m manuscripta <command> ... → CLI
"""

import logging
import sys

import uvicorn


def run() -> None:
    """Entry point: no args → web app, else → CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if len(sys.argv) == 1:
        uvicorn.run("manuscripta.gui.app:app", host="127.0.0.1", port=8000, reload=True)
    else:
        from manuscripta.cli import run_cli
        run_cli()


if __name__ == "__main__":
    run()
