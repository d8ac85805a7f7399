"""Container runtime queries and proxy reload.

Thin layer over the Docker SDK answering the questions the pre-flight
checks ask: which container are we, which containers run nginx and
docker-gen, what is mounted where. It also reloads the proxy once the
certificates directory changed.

"""
import logging
import re
import socket
from typing import Any
from typing import Callable
from typing import Optional

import docker
import docker.errors

from certgate import errors
from certgate._internal import constants

logger = logging.getLogger(__name__)

_CID_RE = re.compile(r'[0-9a-f]{64}')


class DockerRuntime:
    """Read-mostly access to the container runtime.

    The client is only created on first use, so merely building this
    object never touches the Docker socket.

    :ivar str base_url: URL of the Docker daemon, e.g.
        ``unix:///var/run/docker.sock``

    """
    def __init__(self, base_url: str,
                 client_factory: Callable[..., Any] = docker.DockerClient) -> None:
        self.base_url = base_url
        self._client_factory = client_factory
        self._client: Any = None
        self._self_cid: Optional[str] = None

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = self._client_factory(base_url=self.base_url)
            except docker.errors.DockerException as error:
                raise errors.RuntimeApiError(
                    f"Unable to connect to the Docker daemon at {self.base_url}: {error}")
        return self._client

    def inspect(self, cid: str) -> Optional[dict[str, Any]]:
        """Low level inspection data of a container, None if it doesn't exist."""
        try:
            return self.client.containers.get(cid).attrs
        except docker.errors.NotFound:
            return None
        except docker.errors.DockerException as error:
            raise errors.RuntimeApiError(f"Unable to inspect container {cid}: {error}")

    def container_env(self, cid: str) -> list[str]:
        attrs = self.inspect(cid) or {}
        return (attrs.get("Config") or {}).get("Env") or []

    def mount_destinations(self, cid: str) -> list[str]:
        attrs = self.inspect(cid) or {}
        return [mount.get("Destination") for mount in attrs.get("Mounts") or []]

    def labeled_cid(self, label: str) -> Optional[str]:
        """ID of the first running container carrying label."""
        try:
            containers = self.client.containers.list(filters={"label": label})
        except docker.errors.DockerException as error:
            raise errors.RuntimeApiError(f"Unable to list containers: {error}")
        if not containers:
            return None
        return containers[0].id

    def get_self_cid(self) -> Optional[str]:
        """ID of the container this process runs in.

        The /proc files are tried first, then the Docker API is asked about
        the container named after our hostname.

        """
        if self._self_cid is None:
            self._self_cid = self._self_cid_from_proc() or self._self_cid_from_api()
        return self._self_cid

    def _self_cid_from_proc(self) -> Optional[str]:
        for path in constants.CGROUP_PATHS:
            match = _search_file(path, lambda line: True)
            if match:
                return match
        return _search_file(constants.MOUNTINFO_PATH, lambda line: '/hostname' in line)

    def _self_cid_from_api(self) -> Optional[str]:
        try:
            attrs = self.inspect(socket.gethostname())
        except errors.RuntimeApiError:
            logger.debug("Unable to find our own container through the API", exc_info=True)
            return None
        return attrs.get("Id") if attrs else None

    def is_docker_gen_container(self, cid: Optional[str]) -> bool:
        if not cid:
            return False
        return any(var.startswith(constants.DOCKER_GEN_ENV_MARKER)
                   for var in self.container_env(cid))

    def get_nginx_proxy_container(self, explicit: Optional[str] = None) -> Optional[str]:
        """Find the nginx-proxy container.

        In order: the explicitly configured container, a container
        labelled as the proxy, a container we use the volumes of and
        which runs nginx.

        """
        if explicit:
            return explicit
        for label in constants.NGINX_PROXY_LABELS:
            cid = self.labeled_cid(label)
            if cid:
                return cid

        self_cid = self.get_self_cid()
        if not self_cid:
            return None
        host_config = (self.inspect(self_cid) or {}).get("HostConfig") or {}
        for volumes_from in host_config.get("VolumesFrom") or []:
            # drop the :ro or :rw suffix
            cid = volumes_from.split(":")[0]
            if any(var.startswith(constants.NGINX_ENV_MARKER)
                   for var in self.container_env(cid)):
                return cid
        return None

    def get_docker_gen_container(self, explicit: Optional[str] = None) -> Optional[str]:
        """Find the docker-gen container, configured or labelled."""
        if explicit:
            return explicit
        for label in constants.DOCKER_GEN_LABELS:
            cid = self.labeled_cid(label)
            if cid:
                return cid
        return None

    def kill(self, cid: str, signal: str = constants.RELOAD_SIGNAL) -> None:
        try:
            self.client.containers.get(cid).kill(signal=signal)
        except docker.errors.DockerException as error:
            raise errors.RuntimeApiError(f"Unable to send {signal} to {cid}: {error}")

    def exec_run(self, cid: str, cmd: list[str]) -> tuple[int, str]:
        """Run cmd in container cid.

        :returns: exit code and combined output
        :rtype: tuple

        """
        try:
            result = self.client.containers.get(cid).exec_run(cmd)
        except docker.errors.DockerException as error:
            raise errors.RuntimeApiError(f"Unable to run {cmd} in {cid}: {error}")
        output = result.output or b""
        if isinstance(output, bytes):
            output = output.decode("utf-8", "replace")
        return result.exit_code, output


def _search_file(path: str, keep: Callable[[str], bool]) -> Optional[str]:
    try:
        with open(path) as file_d:
            for line in file_d:
                if not keep(line):
                    continue
                match = _CID_RE.search(line)
                if match:
                    return match.group(0)
    except OSError:
        return None
    return None


class ProxyReloader:
    """Reloads nginx after the certificates directory changed.

    With a separate docker-gen container, docker-gen and nginx both get
    a SIGHUP. Otherwise docker-gen and ``nginx -s reload`` are run inside
    the proxy container. Failures are logged, never raised.

    """
    def __init__(self, runtime: DockerRuntime, nginx_proxy_cid: Optional[str],
                 docker_gen_cid: Optional[str]) -> None:
        self.runtime = runtime
        self.nginx_proxy_cid = nginx_proxy_cid
        self.docker_gen_cid = docker_gen_cid

    def __call__(self) -> bool:
        try:
            return self._reload()
        except errors.RuntimeApiError as error:
            logger.error("Can't reload nginx-proxy: %s", error)
            return False

    def _reload(self) -> bool:
        if self.docker_gen_cid:
            logger.info("Reloading nginx docker-gen (using separate container %s)...",
                        self.docker_gen_cid)
            self.runtime.kill(self.docker_gen_cid)
            if self.nginx_proxy_cid:
                # nginx still needs a reload when only certificates changed
                logger.info("Reloading nginx (using separate container %s)...",
                            self.nginx_proxy_cid)
                self.runtime.kill(self.nginx_proxy_cid)
            return True

        if not self.nginx_proxy_cid:
            logger.debug("No nginx-proxy container to reload.")
            return False
        logger.info("Reloading nginx proxy (%s)...", self.nginx_proxy_cid)
        exit_code, output = self.runtime.exec_run(self.nginx_proxy_cid,
                                                  constants.NGINX_RELOAD_COMMAND)
        for line in output.splitlines():
            logger.debug("nginx-proxy: %s", line)
        if exit_code != 0:
            logger.error("Can't reload nginx-proxy.")
            return False
        return True
