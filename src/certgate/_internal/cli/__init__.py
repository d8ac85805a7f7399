"""Certgate command line argument & config processing.

Every option can also be set through the environment variable shown in
``--help``, which is how the companion container is usually configured::

    certgate [options] -- /bin/bash /app/start.sh

"""
import argparse
import os
from typing import Optional

import configargparse

import certgate
from certgate._internal.cli.cli_utils import flag_default
from certgate._internal.cli.cli_utils import split_command

SHORT_USAGE = "certgate [options] -- command [args...]"


def _add_flag(group: argparse._ArgumentGroup, name: str, env_var: str, help_text: str) -> None:
    # Flags take an optional value so that "false" in the environment turns them off.
    group.add_argument(name, env_var=env_var, nargs="?", const="true",
                       default=flag_default(name.lstrip("-").replace("-", "_")),
                       metavar="BOOL", help=help_text)


def build_parser() -> configargparse.ArgParser:
    """Create the certgate argument parser."""
    parser = configargparse.ArgParser(
        prog="certgate",
        usage=SHORT_USAGE,
        description="Pre-flight checks run before the certificate companion starts.",
        args_for_setting_config_path=["-c", "--config"],
        config_arg_help_message="path to config file",
        add_env_var_help=True)
    parser.add_argument("--version", action="version",
                        version="%(prog)s {0}".format(certgate.__version__))

    general = parser.add_argument_group("general")
    _add_flag(general, "--debug", "DEBUG",
              "Show debug messages. Does not change the behavior.")
    general.add_argument("--companion-version", env_var="COMPANION_VERSION",
                         default=flag_default("companion_version"),
                         help="Companion version displayed at startup.")
    general.add_argument("--start-command", env_var="START_COMMAND",
                         default=flag_default("start_command"),
                         help="Wrapped command for which the checks are run.")

    dhparam = parser.add_argument_group("dhparam")
    dhparam.add_argument("--dhparam-bits", env_var="DHPARAM_BITS",
                         default=flag_default("dhparam_bits"),
                         help="Size of the RFC 7919 Diffie-Hellman group: 2048, 3072 "
                              "or 4096.")
    _add_flag(dhparam, "--dhparam-skip", "DHPARAM_SKIP",
              "Don't set up the Diffie-Hellman group.")

    default_cert = parser.add_argument_group("default certificate")
    _add_flag(default_cert, "--create-default-certificate", "CREATE_DEFAULT_CERTIFICATE",
              "Create a self-signed default certificate.")

    docker = parser.add_argument_group("containers")
    docker.add_argument("--docker-host", env_var="DOCKER_HOST",
                        default=flag_default("docker_host"),
                        help="Docker daemon URL.")
    docker.add_argument("--nginx-proxy-container", env_var="NGINX_PROXY_CONTAINER",
                        default=flag_default("nginx_proxy_container"),
                        help="Name or ID of the nginx-proxy container.")
    docker.add_argument("--docker-gen-container", env_var="NGINX_DOCKER_GEN_CONTAINER",
                        default=flag_default("docker_gen_container"),
                        help="Name or ID of the docker-gen container.")
    _add_flag(docker, "--acme-http-challenge-location", "ACME_HTTP_CHALLENGE_LOCATION",
              "Challenges are served through per vhost locations.")

    paths = parser.add_argument_group("paths")
    for name, env_var, help_text in (
            ("--certs-dir", "CERTS_DIR", "Certificates directory shared with nginx."),
            ("--vhost-dir", "VHOST_DIR", "nginx vhost.d directory."),
            ("--conf-dir", "CONF_DIR", "nginx conf.d directory."),
            ("--html-dir", "HTML_DIR", "Directory serving HTTP-01 challenges."),
            ("--acme-sh-dir", "ACME_SH_DIR", "acme.sh configuration directory."),
            ("--user-data-file", "USER_DATA_FILE",
             "When this file exists, vhost.d and conf.d must be writable.")):
        paths.add_argument(name, env_var=env_var,
                           default=flag_default(name.lstrip("-").replace("-", "_")),
                           help=help_text)

    security = parser.add_argument_group("ownership")
    for name, env_var, help_text in (
            ("--files-uid", "FILES_UID", "Owner of the generated files."),
            ("--files-gid", "FILES_GID", "Group of the generated files, defaults to the owner."),
            ("--files-perms", "FILES_PERMS", "Octal mode of the generated files."),
            ("--folders-perms", "FOLDERS_PERMS", "Octal mode of the generated folders."),
            ("--key-perms", "KEY_PERMS", "Octal mode of the private keys.")):
        security.add_argument(name, env_var=env_var,
                              default=flag_default(name.lstrip("-").replace("-", "_")),
                              help=help_text)
    return parser


def prepare_and_parse_args(args: list[str],
                           env_vars: Optional[dict[str, str]] = None) -> argparse.Namespace:
    """Parse certgate options and split off the wrapped command.

    :param list args: command line, without the program name
    :param dict env_vars: environment to read options from, defaults to
        ``os.environ``

    :returns: parsed options, with the wrapped command as ``command``
    :rtype: argparse.Namespace

    """
    if env_vars is None:
        env_vars = dict(os.environ)
    options, command = split_command(args)
    namespace = build_parser().parse_args(options, env_vars=env_vars)
    namespace.command = command
    return namespace
