#!/usr/bin/env python3
"""
Roomba HTTP Service - FastAPI front end for PyRoomba

Exposes the robot's commands on a small HTTP API so it can be driven from
a phone shortcut or home automation:

    GET/POST /clean      -> "start cleaning!"
    GET/POST /dock       -> "back to homebase!"
    GET/POST /poweroff   -> "power off!"
    GET/POST /battery    -> {"charge": 1500, "capacity": 2696}
    GET/POST /status     -> {"state": "passive", "responsive": true, ...}

A device error answers 503 for that request only; the service keeps
running.

Usage:
    pyroomba-server [--host HOST] [--port PORT] [--device DEVICE]

Example:
    pyroomba-server --device /dev/serial0 --wake-pin 23 --port 8080
"""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .commands import (
    DEFAULT_BAUDRATE,
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PORT,
    DEFAULT_READ_TIMEOUT_S,
    DEFAULT_WAKE_PIN,
)
from .exceptions import RoombaError
from .roomba import PyRoomba
from .tools import log_exceptions
from .wake import WakePin


logger = logging.getLogger(__name__)

COMMAND_METHODS = ["GET", "POST"]


def create_app(roomba: PyRoomba, manage_connection: bool = True) -> FastAPI:
    """
    Build the HTTP application around one Roomba.

    Args:
        roomba: Controller shared by all requests (it serializes them)
        manage_connection: Open the serial port and wake pin on startup and
            release them on shutdown
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_connection:
            roomba.connect()
        try:
            yield
        finally:
            if manage_connection:
                roomba.disconnect()

    app = FastAPI(title="PyRoomba", lifespan=lifespan)
    app.state.roomba = roomba

    @app.exception_handler(RoombaError)
    async def roomba_error_handler(request: Request, exc: RoombaError):
        return PlainTextResponse(f"roomba error: {exc}", status_code=503)

    # Handlers are plain functions: FastAPI runs them in its thread pool,
    # and PyRoomba's lock keeps one device transaction in flight.

    @app.api_route("/clean", methods=COMMAND_METHODS, response_class=PlainTextResponse)
    @log_exceptions
    def clean():
        roomba.clean()
        return "start cleaning!"

    @app.api_route("/dock", methods=COMMAND_METHODS, response_class=PlainTextResponse)
    @log_exceptions
    def dock():
        roomba.dock()
        return "back to homebase!"

    @app.api_route("/poweroff", methods=COMMAND_METHODS, response_class=PlainTextResponse)
    @log_exceptions
    def power_off():
        roomba.power_off()
        return "power off!"

    @app.api_route("/battery", methods=COMMAND_METHODS)
    @log_exceptions
    def battery():
        return roomba.get_battery().to_dict()

    @app.api_route("/status", methods=COMMAND_METHODS)
    @log_exceptions
    def status():
        return roomba.get_status().to_dict()

    return app


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="HTTP service that drives a Roomba over its serial Open Interface"
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HTTP_HOST,
        help=f"Host to bind to (default: {DEFAULT_HTTP_HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_HTTP_PORT,
        help=f"Port to listen on (default: {DEFAULT_HTTP_PORT})"
    )
    parser.add_argument(
        "--device", "-d",
        default=DEFAULT_PORT,
        help=f"Serial device (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        "--baudrate", "-b",
        type=int,
        default=DEFAULT_BAUDRATE,
        help=f"Serial baudrate (default: {DEFAULT_BAUDRATE})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_READ_TIMEOUT_S,
        help=f"Serial read timeout in seconds (default: {DEFAULT_READ_TIMEOUT_S})"
    )
    parser.add_argument(
        "--wake-pin",
        type=int,
        default=DEFAULT_WAKE_PIN,
        help=f"BCM pin wired to the BRC line (default: {DEFAULT_WAKE_PIN})"
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help="Checksum attempts per sensor query, 0 for no limit "
             f"(default: {DEFAULT_MAX_ATTEMPTS})"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    roomba = PyRoomba(
        args.device,
        baudrate=args.baudrate,
        timeout=args.timeout,
        wake_pin=WakePin(args.wake_pin),
        max_attempts=args.max_attempts or None,
    )
    app = create_app(roomba)

    logger.info("Starting on %s:%d (device %s)", args.host, args.port, args.device)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
