from __future__ import annotations

import argparse
import logging
import threading
import time
import webbrowser

import uvicorn

from pwadir.core.config import get_settings


logger = logging.getLogger(__name__)

BROWSER_OPEN_DELAY_SECONDS = 0.7
_WILDCARD_HOSTS = {"0.0.0.0", "::", "::0", "[::]"}


def _browser_url(host: str, port: int) -> str:
    """Directory landing page; wildcard binds are opened through loopback."""
    if host in _WILDCARD_HOSTS:
        host = "127.0.0.1"
    return f"http://{host}:{port}/pwas"


def _open_browser_delayed(url: str, delay_seconds: float = BROWSER_OPEN_DELAY_SECONDS) -> None:
    time.sleep(delay_seconds)
    try:
        webbrowser.open(url)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Could not open a browser tab for %s: %s", url, exc)


def run_web_server(host: str, port: int, no_open: bool = False) -> None:
    url = _browser_url(host, port)
    print(f"Serving PWA Directory on {url}")
    if not no_open:
        threading.Thread(target=_open_browser_delayed, args=(url,), daemon=True).start()

    uvicorn.run("pwadir.app.api:app", host=host, port=port, log_level="info")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the PWA Directory site")
    parser.add_argument("--host", default=settings.web_host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.web_port, help="Port to listen on")
    parser.add_argument("--no-open", action="store_true", help="Skip opening the directory in a browser")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    run_web_server(host=args.host, port=args.port, no_open=args.no_open)


if __name__ == "__main__":
    main()
