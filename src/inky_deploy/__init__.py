"""
inky-deploy - Cross-build and deploy inky-gotchi to a Raspberry Pi over SSH

A command-line driver that cross-compiles the inky-gotchi binary, copies it
to the board, and optionally starts gdbserver or runs it interactively.
"""
import argparse
import sys

__version__ = "1.0.0"


def build_parser() -> argparse.ArgumentParser:
    """Top-level argument parser"""
    from inky_deploy.commands import deploy

    parser = argparse.ArgumentParser(
        prog='inky-deploy',
        description='Cross-build inky-gotchi and deploy it to the board',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog='''
Examples:
  inky-deploy                       # Debug cross build only
  inky-deploy -c -r                 # Clean release build
  inky-deploy -d                    # Build and copy to the board
  inky-deploy -g                    # Build, copy, start gdbserver on :1234
  inky-deploy -d -u                 # Build, copy, run interactively
        '''
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    deploy.setup_parser(parser)
    return parser


def main(argv=None):
    """Main CLI entry point"""
    from inky_deploy.commands import deploy
    from inky_deploy.deploy import InvalidOptionError
    from inky_deploy.utils.config import ConfigError

    parser = build_parser()

    try:
        args, options = deploy.parse_args(parser, argv)
    except InvalidOptionError as e:
        print(f"Invalid option: {e.token}")
        sys.exit(1)

    try:
        sys.exit(deploy.execute(args, options))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
