"""
app.py
Main entry point — aiohttp web server that exposes the Jenkins executor:
  - Start a build at POST /api/builds/start
  - Stop a build at POST /api/builds/stop
  - Circuit breaker stats at GET /stats
  - Health check at GET /health
"""
import json
import logging

from aiohttp import web

from config.logging_config import setup_logging
from config.settings import settings
from executor.exceptions import (
    CircuitOpenError,
    CommandTimeoutError,
    NoBuildStartedError,
    ValidationError,
)
from executor.jenkins_executor import JenkinsExecutor

logger = logging.getLogger(__name__)

EXECUTOR_KEY = web.AppKey("executor", JenkinsExecutor)


def _is_local_read_error(err: Exception) -> bool:
    # template read failures carry the file name, socket errors do not
    if isinstance(err, UnicodeDecodeError):
        return True
    return isinstance(err, OSError) and err.filename is not None


def _bad_request(message: str) -> web.HTTPBadRequest:
    return web.HTTPBadRequest(
        text=json.dumps({"status": "error", "message": message}),
        content_type="application/json",
    )


def _error_response(err: Exception) -> web.Response:
    if isinstance(err, ValidationError):
        status = 400
    elif isinstance(err, NoBuildStartedError):
        status = 409
    elif isinstance(err, CircuitOpenError):
        status = 503
    elif isinstance(err, CommandTimeoutError):
        status = 504
    elif _is_local_read_error(err):
        status = 500
    else:
        status = 502
    return web.json_response({"status": "error", "message": str(err)}, status=status)


async def _read_config(req: web.Request) -> dict:
    if "application/json" not in req.content_type:
        raise web.HTTPUnsupportedMediaType(text="Unsupported Media Type")
    try:
        body = await req.json()
    except ValueError as err:
        raise _bad_request(f"Invalid JSON body: {err}")
    if not isinstance(body, dict):
        raise _bad_request("Expected a JSON object")
    return body


# ── Route handlers ────────────────────────────────────────────
async def start_build(req: web.Request) -> web.Response:
    """
    POST /api/builds/start
    Body: { "buildId": 1993, "container": "node:4", "token": "<jwt>" }
    """
    config = await _read_config(req)
    try:
        await req.app[EXECUTOR_KEY].start(config)
    except Exception as err:
        logger.error("Start of build %s failed: %s", config.get("buildId"), err)
        return _error_response(err)
    return web.json_response({"status": "started", "buildId": config["buildId"]})


async def stop_build(req: web.Request) -> web.Response:
    """
    POST /api/builds/stop
    Body: { "buildId": 1993 }
    """
    config = await _read_config(req)
    try:
        await req.app[EXECUTOR_KEY].stop(config)
    except Exception as err:
        logger.error("Stop of build %s failed: %s", config.get("buildId"), err)
        return _error_response(err)
    return web.json_response({"status": "stopped", "buildId": config["buildId"]})


async def stats(req: web.Request) -> web.Response:
    """GET /stats — circuit breaker counters and state."""
    return web.json_response(req.app[EXECUTOR_KEY].stats().to_dict())


async def health(req: web.Request) -> web.Response:
    """GET /health — liveness probe."""
    return web.json_response({"status": "ok", "executor": "jenkins"})


# ── App factory ───────────────────────────────────────────────
def create_app(executor: JenkinsExecutor = None) -> web.Application:
    app = web.Application()
    app[EXECUTOR_KEY] = executor or JenkinsExecutor.from_settings(settings)
    app.router.add_post("/api/builds/start", start_build)
    app.router.add_post("/api/builds/stop", stop_build)
    app.router.add_get("/stats", stats)
    app.router.add_get("/health", health)
    return app


if __name__ == "__main__":
    setup_logging()
    logger.info("Jenkins executor listening on port %d", settings.PORT)
    web.run_app(create_app(), host="0.0.0.0", port=settings.PORT)
