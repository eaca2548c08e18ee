"""
Uvicorn server entrypoint for the Quobyte volume plugin.
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional

import uvicorn

from quobyte_volumes.api.main import create_app
from quobyte_volumes.cli.lib.config import PluginConfig, load_config
from quobyte_volumes.cli.lib.state import get_state_dir
from quobyte_volumes.driver.driver import QuobyteDriver

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quobyte-volumes-plugin", description="Quobyte Docker volume plugin")
    parser.add_argument("--socket", default=None, help="Unix socket path (default: from config)")
    parser.add_argument("--host", default=None, help="Bind host instead of a unix socket")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: from config or 8765)")
    parser.add_argument("--log-level", default="info", help="Log level (default: info)")
    return parser


def run(
    cfg: PluginConfig,
    socket: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    log_level: str = "info",
) -> None:
    """
    Initialize the driver (including remounting volumes) and serve the plugin API.

    Listens on `host`/`port` when a host is given on the command line, or in
    `[plugin] host` unless a socket is given; otherwise on the unix socket.
    """
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    root = get_state_dir()
    driver = QuobyteDriver.initialize(
        root,
        cfg.bootstrap_options,
        remote_timeout=cfg.remote_timeout,
        mount_timeout=cfg.mount_timeout,
    )
    app = create_app(driver)

    if not socket:
        host = host or cfg.api_host
    if host:
        logger.info("Serving Quobyte volume plugin on %s:%s", host, port or cfg.api_port)
        uvicorn.run(app, host=host, port=port or cfg.api_port, log_level=log_level)
    else:
        uds = socket or cfg.socket
        logger.info("Serving Quobyte volume plugin on %s", uds)
        uvicorn.run(app, uds=uds, log_level=log_level)


def main(argv: list[str] | None = None) -> int:
    cfg = load_config()
    args = build_parser().parse_args(argv)
    run(cfg, socket=args.socket, host=args.host, port=args.port, log_level=args.log_level)
    return 0
