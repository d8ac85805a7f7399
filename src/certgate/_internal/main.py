"""Certgate main entry point."""
import logging
import os
import sys
from typing import Optional
from typing import Union

import certgate
from certgate import configuration
from certgate._internal import account
from certgate._internal import checks
from certgate._internal import cli
from certgate._internal import default_cert
from certgate._internal import dhparam
from certgate._internal import docker_api
from certgate._internal import log

logger = logging.getLogger(__name__)


def run_preflight(config: configuration.NamespaceConfig,
                  runtime: Optional[docker_api.DockerRuntime] = None) -> checks.GateResult:
    """Check the environment, then provision the certificates directory.

    :param certgate.configuration.NamespaceConfig config: Configuration object
    :param runtime: container runtime, built from ``config.docker_host``
        when not given

    :returns: containers found by the startup gate
    :rtype: `certgate._internal.checks.GateResult`

    :raises errors.Error: if the configuration or the environment is unusable

    """
    if config.companion_version:
        logger.info("Running acme-companion version %s", config.companion_version)

    # Configuration errors must abort before anything is written.
    if not config.dhparam_skip:
        dhparam.validate_bits(config.dhparam_bits)

    if runtime is None:
        runtime = docker_api.DockerRuntime(config.docker_host)
    gate = checks.run_startup_gate(config, runtime)

    reload_proxy = docker_api.ProxyReloader(runtime, gate.nginx_proxy_cid, gate.docker_gen_cid)
    policy = config.ownership_policy

    if config.create_default_certificate:
        default_cert.DefaultCertProvisioner(
            config.default_cert_path, config.default_key_path,
            policy.apply, reload_proxy).ensure_default_cert()

    dhparam.DHParamProvisioner(config.dhparam_path, policy.apply).ensure_dhparam(
        config.dhparam_bits, config.dhparam_skip)

    reload_proxy()
    account.check_default_account(config.account_conf_path)
    return gate


def main(cli_args: Optional[list[str]] = None) -> Optional[Union[str, int]]:
    """Run certgate.

    The checks run when the wrapped command is the companion start
    command, or when there is no wrapped command at all. The wrapped
    command then replaces the current process.

    :param cli_args: command line to certgate, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: value for `sys.exit` about the exit status of certgate
    :rtype: `str` or `int` or `None`

    """
    if cli_args is None:
        cli_args = sys.argv[1:]

    log.pre_arg_parse_setup()

    args = cli.prepare_and_parse_args(cli_args)
    config = configuration.NamespaceConfig(args)
    log.post_arg_parse_setup(config)

    logger.debug("certgate version: %s", certgate.__version__)
    logger.debug("Arguments: %r", cli_args)

    command = config.command
    if not command or command == config.start_command:
        run_preflight(config)
    if not command:
        return 0

    sys.stdout.flush()
    sys.stderr.flush()
    os.execvp(command[0], command)
    return None  # pragma: no cover
