#!/usr/bin/env python3
"""
toolsetup - Check, install and authenticate development tools.

Usage:
    provision.py                          # Check every tool, print status table
    provision.py TOOL [VERSION] [TOKEN]   # Install and/or authenticate one tool

Exit status is the sum of the per-tool status codes in check mode, and the
installer's exit code in single-tool mode.
"""

import argparse
import sys

from toolsetup.bulk import check_all
from toolsetup.common import PROG_NAME, is_debug_enabled
from toolsetup.config import Config, ConfigError, load_config
from toolsetup.detection import VERSION_RE
from toolsetup.environment import Platform, UnsupportedPlatformError, detect_platform
from toolsetup.installer import install_or_authenticate
from toolsetup.logging_config import get_logger, setup_logging
from toolsetup.prerequisites import PrerequisiteError, check_xquartz
from toolsetup.render import print_summary, render_table
from toolsetup.tools import get_tool, resolve_tool


EXIT_ERROR = 1


def cmd_check(config: Config, verbose: bool = False) -> int:
    """Check every roster tool, then print the aligned status table."""
    report = check_all(config=config, verbose=verbose)
    render_table(report.results)
    print_summary(report)
    return report.process_exit_code()


def cmd_install(args: argparse.Namespace, config: Config, platform: Platform) -> int:
    """Install and/or authenticate a single tool."""
    if args.version and not VERSION_RE.match(args.version):
        print(f"invalid version '{args.version}', expected N.N.N "
              f"(e.g. {PROG_NAME} {args.tool} 1.2.3)", file=sys.stderr)
        return EXIT_ERROR

    if get_tool(args.tool, config) is None:
        get_logger().warning(f"{args.tool} is not on the roster, checking it with defaults")
    spec = resolve_tool(args.tool, config)

    outcome = install_or_authenticate(
        spec,
        version=args.version,
        token=args.token,
        config=config,
        platform=platform,
        verbose=args.verbose,
    )
    if outcome.message:
        print(outcome.message)
    return outcome.exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Check, install and authenticate development tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("tool", nargs="?", help="Tool to install and authenticate (omit to check all)")
    parser.add_argument("version", nargs="?", help="Exact version to install and pin")
    parser.add_argument("token", nargs="?", help="Credential for tools that accept a token login")
    parser.add_argument("--config", help="Path to a configuration file")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)
    args.verbose = args.verbose or is_debug_enabled()

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        platform = detect_platform(verbose=args.verbose)
        check_xquartz(platform, verbose=args.verbose)
        config = load_config(args.config, verbose=args.verbose)
    except (UnsupportedPlatformError, PrerequisiteError, ConfigError) as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR

    if args.tool:
        return cmd_install(args, config, platform)
    return cmd_check(config, verbose=args.verbose)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
