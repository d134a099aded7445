"""
jenkins_client/client.py
Async facade over the Jenkins REST API.
Uses python-jenkins library for authentication, crumbs + job control.

Remote operations are grouped the way the executor addresses them:
    client.job.exists / create / config / build / get / destroy
    client.build.stop
Each blocking python-jenkins call runs in a worker thread.
"""
import asyncio
import logging

import jenkins
from config.settings import settings

logger = logging.getLogger(__name__)


class JobApi:
    """Job-level operations (module "job")."""

    def __init__(self, server: jenkins.Jenkins):
        self._server = server

    async def exists(self, name: str) -> bool:
        return await asyncio.to_thread(self._server.job_exists, name)

    async def create(self, name: str, xml: str) -> None:
        await asyncio.to_thread(self._server.create_job, name, xml)

    async def config(self, name: str, xml: str) -> None:
        await asyncio.to_thread(self._server.reconfig_job, name, xml)

    async def build(self, name: str, parameters: dict = None) -> int:
        """Queue a build. Returns the queue item number."""
        return await asyncio.to_thread(
            self._server.build_job, name, parameters=parameters
        )

    async def get(self, name: str) -> dict:
        """
        Fetch the job record. The executor only looks at
        lastBuild.number, which is None until the job has run once.
        """
        return await asyncio.to_thread(self._server.get_job_info, name)

    async def destroy(self, name: str) -> None:
        await asyncio.to_thread(self._server.delete_job, name)


class BuildApi:
    """Build-level operations (module "build")."""

    def __init__(self, server: jenkins.Jenkins):
        self._server = server

    async def stop(self, name: str, number: int) -> None:
        await asyncio.to_thread(self._server.stop_build, name, number)


class JenkinsClient:

    def __init__(
        self,
        host: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        timeout: float = None,
    ):
        host = host or settings.JENKINS_HOST
        port = port or settings.JENKINS_PORT
        self.url = f"http://{host}:{port}"
        self._server = jenkins.Jenkins(
            url=self.url,
            username=username if username is not None else settings.JENKINS_USER,
            password=password if password is not None else settings.JENKINS_TOKEN,
            timeout=timeout or settings.JENKINS_TIMEOUT,
        )
        self.job = JobApi(self._server)
        self.build = BuildApi(self._server)
        logger.debug("Jenkins client ready for %s", self.url)
