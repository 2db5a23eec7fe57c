"""
Host process entrypoint.

``rimehost serve`` runs the engine host behind the control API until it is
interrupted; ``rimehost reload`` asks a running host to redeploy, which is the
cross-process reload signal.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import httpx

from . import HostConfig
from .api.server import create_app, host_lifespan
from .lifecycle import LifecycleController
from .notifications import RELOAD_NOTIFICATION
from .runtime.binding import EngineUnavailableError
from .runtime.librime import LibrimeBinding
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)

ENV_LIBRIME = "RIMEHOST_LIBRIME"


def build_controller(config: HostConfig) -> LifecycleController:
    binding = LibrimeBinding(config.librime_path)
    return LifecycleController(binding, config)


async def serve(config: HostConfig, *, full_check: bool = False, watch_logind: bool = True) -> None:
    """
    Run the control API, and with it the engine host, inside an asyncio loop.

    uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which runs the
    quit protocol before the process exits.
    """

    import uvicorn

    controller = build_controller(config)
    app = create_app(
        controller=controller,
        lifespan=host_lifespan(initial_full_check=full_check, watch_logind=watch_logind),
    )
    server_config = uvicorn.Config(
        app=app,
        host=config.control_host,
        port=config.control_port,
        log_config=None,
        log_level="info",
        reload=False,
    )
    server = uvicorn.Server(config=server_config)
    await server.serve()


def send_reload(host: str, port: int, *, timeout: float = 30.0) -> bool:
    url = f"http://{host}:{port}/notifications/{RELOAD_NOTIFICATION}"
    try:
        response = httpx.post(url, timeout=timeout)
    except httpx.HTTPError as exc:
        LOG.error("Unable to reach rime host at %s:%s (%s)", host, port, exc)
        return False
    if response.status_code != 202:
        LOG.error("Rime host rejected reload: %s %s", response.status_code, response.text)
        return False
    LOG.info("Reload requested (%s subscriber(s)).", response.json().get("delivered", 0))
    return True


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rime input method engine host")
    parser.add_argument("--host", default="127.0.0.1", help="control API host")
    parser.add_argument("--port", type=int, default=8765, help="control API port")
    parser.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="run the engine host")
    serve_parser.add_argument("--shared-data-dir", type=Path, default=None)
    serve_parser.add_argument("--user-data-dir", type=Path, default=None)
    serve_parser.add_argument("--log-dir", type=Path, default=None)
    serve_parser.add_argument(
        "--librime",
        default=os.environ.get(ENV_LIBRIME),
        help="path to the librime shared library",
    )
    serve_parser.add_argument("--full-check", action="store_true", help="run a full maintenance check at startup")
    serve_parser.add_argument("--no-logind", action="store_true", help="do not watch logind for power-off")

    subparsers.add_parser("reload", help="ask a running host to redeploy")

    # A bare ``rimehost`` behaves like ``rimehost serve``.
    parser.set_defaults(
        command="serve",
        shared_data_dir=None,
        user_data_dir=None,
        log_dir=None,
        librime=os.environ.get(ENV_LIBRIME),
        full_check=False,
        no_logind=False,
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> HostConfig:
    overrides = {
        "shared_data_dir": args.shared_data_dir,
        "user_data_dir": args.user_data_dir,
        "log_dir": args.log_dir,
    }
    return HostConfig(
        librime_path=args.librime,
        control_host=args.host,
        control_port=args.port,
        **{key: value for key, value in overrides.items() if value is not None},
    )


def run(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    if args.command == "reload":
        configure_logging(level=level)
        return 0 if send_reload(args.host, args.port) else 1

    config = config_from_args(args)
    configure_logging(level=level, log_dir=config.log_dir)
    try:
        asyncio.run(serve(config, full_check=args.full_check, watch_logind=not args.no_logind))
    except EngineUnavailableError as exc:
        LOG.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        LOG.info("Host interrupted by user.")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
