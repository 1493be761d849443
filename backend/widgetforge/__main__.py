"""Run the widget document API: ``python -m widgetforge --port 8000``."""

from __future__ import annotations

import argparse
import logging

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the WidgetForge document engine over HTTP")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run("widgetforge.main:create_app", host=args.host, port=args.port, reload=args.reload, factory=True)


if __name__ == "__main__":
    main()
