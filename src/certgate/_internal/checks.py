"""Startup gate run before any certificate material is touched.

Every check either returns quietly, logs a warning for conditions the
companion can live with, or raises `certgate.errors.PreconditionError`
which aborts the container start.

"""
import logging
import os
import stat
from typing import NamedTuple
from typing import Optional

from certgate import configuration
from certgate import errors
from certgate import util
from certgate._internal import docker_api

logger = logging.getLogger(__name__)


class GateResult(NamedTuple):
    """What the gate found out about the containers around us."""
    self_cid: Optional[str]
    nginx_proxy_cid: str
    docker_gen_cid: Optional[str]


def check_docker_socket(docker_host: str) -> None:
    """Check the Docker socket was shared with the container.

    Only ``unix://`` hosts are checked.

    :param str docker_host: value of DOCKER_HOST

    :raises errors.PreconditionError: if the socket file isn't there

    """
    prefix = "unix://"
    if not docker_host.startswith(prefix):
        return
    socket_file = docker_host[len(prefix):]
    try:
        is_socket = stat.S_ISSOCK(os.stat(socket_file).st_mode)
    except OSError:
        is_socket = False
    if is_socket:
        return

    if not os.access(socket_file, os.R_OK):
        logger.warning("Docker host socket at %s might not be readable. "
                       "Please check user permissions", socket_file)
        logger.warning("If you are in a SELinux environment, try using: "
                       "'-v /var/run/docker.sock:%s:z'", socket_file)
    raise errors.PreconditionError(
        f"You need to share your Docker host socket with a volume at {socket_file}",
        (f"Typically you should run your container with: "
         f"'-v /var/run/docker.sock:{socket_file}:ro'",))


def check_dir_is_mounted_volume(runtime: docker_api.DockerRuntime, directory: str) -> bool:
    """Warn if directory isn't a volume mounted in our container.

    :returns: True if directory is known to be a mounted volume
    :rtype: bool

    """
    try:
        self_cid = runtime.get_self_cid()
        if not self_cid:
            logger.warning("Can't check if '%s' is a mounted volume without self "
                           "container ID.", directory)
            return False
        mounted = directory in runtime.mount_destinations(self_cid)
    except errors.RuntimeApiError as error:
        logger.warning("Can't check if '%s' is a mounted volume: %s", directory, error)
        return False
    if not mounted:
        logger.warning("'%s' does not appear to be a mounted volume.", directory)
    return mounted


def check_writable_directory(runtime: docker_api.DockerRuntime, directory: str) -> None:
    """Check directory exists and is writable.

    :raises errors.PreconditionError: if it isn't

    """
    check_dir_is_mounted_volume(runtime, directory)

    if not os.path.isdir(directory):
        raise errors.PreconditionError(
            f"Can't access to '{directory}' directory !",
            (f"Check that '{directory}' directory is declared as a writable volume.",))
    if not util.is_writable_dir(directory):
        raise errors.PreconditionError(
            f"Can't write to the '{directory}' directory !",
            (f"Check that '{directory}' directory is export as a writable volume.",))


def warn_html_directory(runtime: docker_api.DockerRuntime, directory: str) -> bool:
    """Warn if the HTTP-01 challenge directory can't be written.

    :returns: True if the directory is writable
    :rtype: bool

    """
    check_dir_is_mounted_volume(runtime, directory)

    if util.is_writable_dir(directory):
        return True
    logger.warning("Can't access or write to '%s' directory. This will prevent HTTP-01 "
                   "challenges from working correctly.", directory)
    logger.warning("If you are only using DNS-01 challenges, you can ignore this warning, "
                   "otherwise check that '%s' is declared as a writable volume.", directory)
    return False


def discover_containers(runtime: docker_api.DockerRuntime,
                        config: configuration.NamespaceConfig) -> tuple[str, Optional[str]]:
    """Find the nginx-proxy and docker-gen containers.

    A missing docker-gen container is fine when the proxy container runs
    docker-gen itself.

    :returns: nginx-proxy and docker-gen container IDs
    :rtype: tuple

    :raises errors.PreconditionError: if a container can't be found

    """
    nginx_proxy_cid = runtime.get_nginx_proxy_container(config.nginx_proxy_container)
    if not nginx_proxy_cid:
        raise errors.PreconditionError(
            "Can't get nginx-proxy container ID ! "
            "Check that you are doing one of the following :",
            ("Use the --volumes-from option to mount volumes from the nginx-proxy container.",
             "Set the NGINX_PROXY_CONTAINER env var on the letsencrypt-companion container "
             "to the name of the nginx-proxy container.",
             "Label the nginx-proxy container to use with 'com.github.nginx-proxy.nginx'."))

    docker_gen_cid = runtime.get_docker_gen_container(config.docker_gen_container)
    if not docker_gen_cid and not runtime.is_docker_gen_container(nginx_proxy_cid):
        raise errors.PreconditionError(
            "Can't get docker-gen container id ! If you are running a three containers "
            "setup, check that you are doing one of the following :",
            ("Set the NGINX_DOCKER_GEN_CONTAINER env var on the letsencrypt-companion "
             "container to the name of the docker-gen container.",
             "Label the docker-gen container to use with 'com.github.nginx-proxy.docker-gen'."))
    logger.debug("nginx-proxy container: %s, docker-gen container: %s",
                 nginx_proxy_cid, docker_gen_cid)
    return nginx_proxy_cid, docker_gen_cid


def run_startup_gate(config: configuration.NamespaceConfig,
                     runtime: docker_api.DockerRuntime) -> GateResult:
    """Run every check needed before provisioning.

    :raises errors.PreconditionError: on the first fatal failure

    """
    check_docker_socket(config.docker_host)
    nginx_proxy_cid, docker_gen_cid = discover_containers(runtime, config)

    check_writable_directory(runtime, config.certs_dir)
    if config.acme_http_challenge_location:
        check_writable_directory(runtime, config.vhost_dir)
    check_writable_directory(runtime, config.acme_sh_dir)
    warn_html_directory(runtime, config.html_dir)
    if os.path.isfile(config.user_data_file):
        check_writable_directory(runtime, config.vhost_dir)
        check_writable_directory(runtime, config.conf_dir)

    return GateResult(runtime.get_self_cid(), nginx_proxy_cid, docker_gen_cid)
