"""Build and deploy command"""
import argparse
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

from inky_deploy.core import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    YamlConfigLoader,
)
from inky_deploy.deploy import DeploymentError, InvalidOptionError, SSHDeployer
from inky_deploy.driver import DeployDriver, DeployOptions
from inky_deploy.utils.build_helper import CrossBuilder
from inky_deploy.utils.config import load_config

# Exact spellings accepted on the command line; no clustering (-rd), no
# attached values (--release=1), no abbreviations (--rel)
FLAG_OPTIONS = frozenset([
    '-r', '--release',
    '-c', '--clean',
    '-d', '--deploy',
    '-g', '--gdbserver',
    '-u', '--run',
    '--strict',
    '-v', '--verbose',
    '-h', '--help',
    '--version',
])
VALUE_OPTIONS = frozenset(['--config'])


def setup_parser(parser):
    """Setup argument parser for the deploy command"""
    parser.add_argument(
        '-r', '--release',
        action='store_true',
        help='Build in release mode'
    )
    parser.add_argument(
        '-c', '--clean',
        action='store_true',
        help='Remove local build output before building'
    )
    parser.add_argument(
        '-d', '--deploy',
        action='store_true',
        help='Copy the binary to the board (kills a running gdbserver first)'
    )
    parser.add_argument(
        '-g', '--gdbserver',
        action='store_true',
        help='Deploy, then start gdbserver on the board'
    )
    parser.add_argument(
        '-u', '--run',
        action='store_true',
        help='Run the deployed binary on the board'
    )
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='YAML config file (default: ./inky-deploy.yaml if present)'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Stop at the first failing step'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print each external command before running it'
    )


def check_tokens(argv: List[str]) -> None:
    """Raise InvalidOptionError for the first token not in the recognized set.

    --config takes the following token as its value, or an attached
    --config=PATH.
    """
    tokens = iter(argv)
    for token in tokens:
        if token in FLAG_OPTIONS:
            continue
        if token in VALUE_OPTIONS:
            value = next(tokens, None)
            if value is None or value.startswith('-'):
                raise InvalidOptionError(token)
            continue
        if any(token.startswith(f'{name}=') for name in VALUE_OPTIONS):
            continue
        raise InvalidOptionError(token)


def parse_args(
    parser: argparse.ArgumentParser,
    argv: Optional[List[str]] = None
) -> Tuple[argparse.Namespace, DeployOptions]:
    """Parse argv, rejecting anything that is not an exact known spelling.

    Every token is checked before argparse sees it, so argparse never gets
    to print its own usage error.

    Raises:
        InvalidOptionError: for the first unrecognized token
    """
    if argv is None:
        argv = sys.argv[1:]
    check_tokens(argv)

    args = parser.parse_args(argv)

    options = DeployOptions(
        release=args.release,
        clean=args.clean,
        deploy=args.deploy,
        run=args.run,
        gdbserver=args.gdbserver
    )
    return args, options


def execute(args, options: DeployOptions) -> int:
    """Execute the deploy command"""
    logger = ConsoleLogger(verbose=args.verbose)
    filesystem = RealFileSystemService()
    executor = SubprocessExecutor()

    config = load_config(YamlConfigLoader(filesystem), filesystem, args.config)
    if args.strict:
        config = replace(config, strict=True)

    driver = DeployDriver(
        config=config,
        builder=CrossBuilder(config, filesystem, executor, logger),
        deployer=SSHDeployer(config, filesystem, executor, logger),
        logger=logger
    )

    try:
        summary = driver.execute(options)
    except DeploymentError as e:
        logger.error(str(e))
        return e.returncode

    if summary.gdbserver_pid is not None:
        logger.info(
            f"gdbserver started on {config.host}, port {config.gdb_port} "
            f"(forward with: ssh -L {config.gdb_port}:localhost:{config.gdb_port} {config.host})"
        )
    return summary.returncode
