"""Certgate constants."""
import logging
from typing import Any

CLI_DEFAULTS: dict[str, Any] = dict(  # noqa
    dhparam_bits="4096",
    dhparam_skip=False,
    create_default_certificate=False,
    debug=False,
    docker_host="unix:///var/run/docker.sock",
    nginx_proxy_container=None,
    docker_gen_container=None,
    acme_http_challenge_location=False,
    files_uid="root",
    files_gid=None,
    files_perms="644",
    folders_perms="755",
    key_perms="600",
    certs_dir="/etc/nginx/certs",
    vhost_dir="/etc/nginx/vhost.d",
    conf_dir="/etc/nginx/conf.d",
    html_dir="/usr/share/nginx/html",
    acme_sh_dir="/etc/acme.sh",
    user_data_file="/app/letsencrypt_user_data",
    start_command="/bin/bash /app/start.sh",
    companion_version=None,
    command=[],
)
"""Defaults for CLI flags and `certgate.configuration.NamespaceConfig` attributes."""

TRUE_VALUES = ("true", "yes", "1")
"""Case-insensitive spellings of a true boolean environment variable."""

QUIET_LOGGING_LEVEL = logging.ERROR
"""Logging level used before the command line is parsed."""

DEFAULT_LOGGING_LEVEL = logging.INFO
"""Logging level used once the command line is parsed, unless --debug."""

SUPPORTED_DHPARAM_BITS = (2048, 3072, 4096)
"""Sizes of the bundled RFC 7919 Diffie-Hellman groups."""

DHPARAM_FILENAME = "dhparam.pem"
"""Name of the active DH parameters file in the certificates directory."""

DHPARAM_REFERENCE_PATTERN = "ffdhe{bits}.pem"
"""Name of a bundled RFC 7919 group inside the ``certgate/dhparam`` package data."""

DEFAULT_CERT_FILENAME = "default.crt"
DEFAULT_KEY_FILENAME = "default.key"

DEFAULT_CERT_CN = "acme-companion"
"""Common name marking a default certificate as generated by this tool."""

DEFAULT_CERT_KEY_SIZE = 4096
DEFAULT_CERT_VALIDITY_DAYS = 365

DEFAULT_CERT_MIN_VALIDITY = 60 * 60 * 24 * 30 * 3
"""Remaining validity (seconds) below which a generated default certificate is replaced."""

TMP_SUFFIX = ".tmp"
NEW_SUFFIX = ".new"

WRITABLE_PROBE = ".check_writable"
"""File created then removed to check a directory is writable."""

ACCOUNT_CONF_PATH = ("default", "account.conf")
"""Location of the default acme.sh account configuration, relative to acme_sh_dir."""

ACCOUNT_EMAIL_KEY = "ACCOUNT_EMAIL"

PRIVATE_FILE_SUFFIXES = ("default.key", "key.pem", ".json")
"""Files matching these suffixes receive the private key permissions."""

NGINX_PROXY_LABELS = (
    "com.github.nginx-proxy.nginx",
    "com.github.jrcs.letsencrypt_nginx_proxy_companion.nginx_proxy",
)
"""Labels identifying the proxy container, newest first."""

DOCKER_GEN_LABELS = (
    "com.github.nginx-proxy.docker-gen",
    "com.github.jrcs.letsencrypt_nginx_proxy_companion.docker_gen",
)
"""Labels identifying the docker-gen container, newest first."""

NGINX_ENV_MARKER = "NGINX_VERSION="
DOCKER_GEN_ENV_MARKER = "DOCKER_GEN_VERSION="

NGINX_RELOAD_COMMAND = [
    "sh", "-c",
    "/app/docker-entrypoint.sh /usr/local/bin/docker-gen /app/nginx.tmpl "
    "/etc/nginx/conf.d/default.conf; /usr/sbin/nginx -s reload",
]
"""Command executed inside a combined nginx/docker-gen container to reload it."""

RELOAD_SIGNAL = "SIGHUP"

CGROUP_PATHS = ("/proc/1/cpuset", "/proc/self/cgroup")
"""cgroup v1 files holding the ID of the container we are running in."""

MOUNTINFO_PATH = "/proc/self/mountinfo"
"""With cgroup v2, the container ID appears in the hostname mount."""
