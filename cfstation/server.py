"""HTTP surface exposing station telemetry and methods to the host."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from aiohttp import web

from .config import ServerConfig
from .engine import StationEngine
from .errors import InvalidArgumentError
from .runtime import StationRuntime

logger = logging.getLogger(__name__)

ENGINE_KEY = web.AppKey("engine", StationEngine)
RUNTIME_KEY = web.AppKey("runtime", StationRuntime)


async def _json_body(req: web.Request) -> Dict[str, Any]:
    if not req.can_read_body:
        return {}
    try:
        body = await req.json()
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be a JSON object")
    return body


def _success(message: str = "") -> web.Response:
    return web.json_response({"status": "success", "message": message})


@web.middleware
async def error_middleware(req: web.Request, handler):
    try:
        return await handler(req)
    except InvalidArgumentError as exc:
        logger.warning(f"Rejected {req.method} {req.path}: {exc}")
        return web.json_response({"status": "error", "message": str(exc)}, status=400)


# -------------------------
# Web handlers
# -------------------------
async def telemetry(req: web.Request):
    engine = req.app[ENGINE_KEY]
    return web.json_response(engine.read_metrics().to_dict())


async def set_ideal_cycle_time(req: web.Request):
    body = await _json_body(req)
    if "idealCycleTime" not in body:
        raise InvalidArgumentError("Missing idealCycleTime")
    req.app[ENGINE_KEY].set_ideal_cycle_time(body["idealCycleTime"])
    return _success(f"Ideal cycle time set to {body['idealCycleTime']} ms")


async def execute(req: web.Request):
    body = await _json_body(req)
    if "productSerialNumber" not in body:
        raise InvalidArgumentError("Missing productSerialNumber")
    serial_number = body["productSerialNumber"]
    req.app[ENGINE_KEY].execute(serial_number)
    return _success(f"Building product #{serial_number}")


async def reset(req: web.Request):
    req.app[ENGINE_KEY].reset()
    return _success("Station reset")


async def open_pressure_release_valve(req: web.Request):
    req.app[ENGINE_KEY].open_pressure_release_valve()
    return _success("Pressure release valve opened")


def create_app(engine: StationEngine, server_config: Optional[ServerConfig] = None,
               run_clock: bool = True) -> web.Application:
    """Build the application; with ``run_clock`` a runtime thread drives the engine."""
    server_config = server_config or ServerConfig()
    prefix = server_config.prefix

    app = web.Application(middlewares=[error_middleware])
    app[ENGINE_KEY] = engine

    app.router.add_get(f"{prefix}/telemetry", telemetry)
    app.router.add_put(f"{prefix}/telemetry/ideal-cycle-time", set_ideal_cycle_time)
    app.router.add_post(f"{prefix}/methods/execute", execute)
    app.router.add_post(f"{prefix}/methods/reset", reset)
    app.router.add_post(f"{prefix}/methods/open-pressure-release-valve", open_pressure_release_valve)

    if run_clock:
        async def on_startup(app):
            runtime = StationRuntime(engine)
            runtime.start()
            app[RUNTIME_KEY] = runtime

        async def on_cleanup(app):
            runtime = app.get(RUNTIME_KEY)
            if runtime:
                runtime.stop()

        app.on_startup.append(on_startup)
        app.on_cleanup.append(on_cleanup)

    return app
