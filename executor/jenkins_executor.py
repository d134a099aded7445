"""
executor/jenkins_executor.py
Runs Screwdriver builds as Jenkins jobs.

start: read job template -> create or update job SD-<buildId> -> trigger build
stop:  read job -> stop its last build -> delete the job

Every Jenkins call is described by a JenkinsCommand and goes through one
shared circuit breaker. Errors are never caught here: a job created before a
failed trigger stays on the server.
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional

from config.settings import settings, BUNDLED_JOB_TEMPLATE
from executor.base import Executor
from executor.breaker import BreakerStats, CircuitBreaker
from executor.command import JenkinsCommand
from executor.exceptions import CommandTimeoutError, NoBuildStartedError
from jenkins_client.client import JenkinsClient

logger = logging.getLogger(__name__)

JOB_PREFIX = "SD-"

# a timed-out attempt of these may still land on the server
NOT_REPEATABLE_ON_TIMEOUT = {("job", "create"), ("job", "build")}


def job_name(build_id) -> str:
    """Jenkins job name for a Screwdriver build id."""
    return f"{JOB_PREFIX}{build_id}"


class JenkinsExecutor(Executor):

    def __init__(
        self,
        ecosystem: dict,
        host: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        jenkins_timeout: Optional[float] = None,
        fusebox: Optional[dict] = None,
        template_path: str = BUNDLED_JOB_TEMPLATE,
        destroy_after_stop: bool = True,
        include_container: bool = True,
        jenkins_client: Optional[JenkinsClient] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        """
        ecosystem          {"api": ..., "store": ...} routable Screwdriver URIs
        host, port         Jenkins server; username/password are its credentials
        jenkins_timeout    socket timeout for python-jenkins, kept below the breaker timeout
        fusebox            keyword options for CircuitBreaker
        template_path      job template, read on every start
        destroy_after_stop delete the job once its build is stopped
        include_container  pass SD_CONTAINER with the build parameters
        jenkins_client, breaker  prebuilt collaborators (tests, custom wiring)
        """
        self.ecosystem = ecosystem
        self.template_path = Path(template_path)
        self.destroy_after_stop = destroy_after_stop
        self.include_container = include_container
        fusebox = dict(fusebox or {})
        fusebox.setdefault("should_retry", self._should_retry)
        jenkins_timeout = jenkins_timeout or settings.JENKINS_TIMEOUT
        breaker_timeout = fusebox.get("timeout", 10.0)
        if breaker_timeout is not None and jenkins_timeout >= breaker_timeout:
            logger.warning(
                "Jenkins socket timeout %.1fs is not below the breaker timeout %.1fs",
                jenkins_timeout, breaker_timeout,
            )
        self.jenkins_client = jenkins_client or JenkinsClient(
            host=host, port=port, username=username, password=password,
            timeout=jenkins_timeout,
        )
        self.breaker = breaker or CircuitBreaker(self._jenkins_command, **fusebox)

    @classmethod
    def from_settings(cls, cfg=settings) -> "JenkinsExecutor":
        return cls(
            ecosystem=cfg.ecosystem,
            host=cfg.JENKINS_HOST,
            port=cfg.JENKINS_PORT,
            username=cfg.JENKINS_USER,
            password=cfg.JENKINS_TOKEN,
            jenkins_timeout=cfg.JENKINS_TIMEOUT,
            fusebox=cfg.fusebox,
            template_path=cfg.JENKINS_JOB_TEMPLATE,
            destroy_after_stop=cfg.JENKINS_DESTROY_AFTER_STOP,
            include_container=cfg.JENKINS_INCLUDE_CONTAINER,
        )

    # ── Remote calls ──────────────────────────────────────────────
    async def _jenkins_command(self, command: JenkinsCommand):
        """
        Dispatch a descriptor to client.<module>.<action>(**params).
        This is the only function the breaker wraps.
        """
        logger.debug("Jenkins %s %s", command, command.params.get("name", ""))
        module = getattr(self.jenkins_client, command.module)
        action = getattr(module, command.action)
        return await action(**command.params)

    @staticmethod
    def _should_retry(err: BaseException, command: JenkinsCommand) -> bool:
        if isinstance(err, CommandTimeoutError):
            return (command.module, command.action) not in NOT_REPEATABLE_ON_TIMEOUT
        return True

    async def _run(self, module: str, action: str, **params):
        return await self.breaker.run_command(JenkinsCommand(module, action, params))

    async def _load_template(self) -> str:
        return await asyncio.to_thread(self.template_path.read_text, encoding="utf-8")

    async def _create_or_update_job(self, name: str, xml: str):
        if await self._run("job", "exists", name=name):
            await self._run("job", "config", name=name, xml=xml)
        else:
            await self._run("job", "create", name=name, xml=xml)

    def _build_parameters(self, config: dict) -> dict:
        parameters = {
            "SD_BUILDID": str(config["buildId"]),
            "SD_TOKEN": config["token"],
        }
        if self.include_container:
            parameters["SD_CONTAINER"] = config["container"]
        parameters["SD_API"] = self.ecosystem["api"]
        parameters["SD_STORE"] = self.ecosystem["store"]
        return parameters

    # ── Executor interface ────────────────────────────────────────
    async def _start(self, config: dict) -> None:
        name = job_name(config["buildId"])
        logger.info("Starting build %s as job %s", config["buildId"], name)

        xml = await self._load_template()
        await self._create_or_update_job(name, xml)
        await self._run("job", "build", name=name, parameters=self._build_parameters(config))

    async def _stop(self, config: dict) -> None:
        name = job_name(config["buildId"])
        logger.info("Stopping build %s (job %s)", config["buildId"], name)

        info = await self._run("job", "get", name=name)
        last_build = (info or {}).get("lastBuild") or {}
        number = last_build.get("number")
        if number is None:
            raise NoBuildStartedError()

        await self._run("build", "stop", name=name, number=number)
        if self.destroy_after_stop:
            await self._run("job", "destroy", name=name)

    def stats(self) -> BreakerStats:
        return self.breaker.stats()
