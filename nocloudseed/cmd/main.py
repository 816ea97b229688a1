#!/usr/bin/env python3

# This file is part of nocloud-seed. See LICENSE file for license information.

"""Seed the NoCloud datasource from the Vultr metadata service."""

import argparse
import logging
import sys

from nocloudseed import log, settings, signal_handler, util, version
from nocloudseed.net import InterfaceLookupError
from nocloudseed.net.dhcp import NoDHCPLeaseError
from nocloudseed.net.ephemeral import EphemeralDHCPv4
from nocloudseed.nocloud import ArtifactWriteError, translate, write_seed
from nocloudseed.sources import vultr
from nocloudseed.url_helper import UrlError

NAME = "nocloud-seed"

LOG = logging.getLogger(__name__)

FATAL_ERRORS = (
    InterfaceLookupError,
    NoDHCPLeaseError,
    UrlError,
    vultr.MetadataError,
    ArtifactWriteError,
)


class ConfigurationError(ValueError):
    """Raised when the command line does not describe a usable setup."""


def get_parser(parser=None):
    """Build or extend an arg parser for nocloud-seed.

    @param parser: Optional existing ArgumentParser instance which will be
        extended to support the args of this utility.

    @returns: ArgumentParser with proper argument configuration.
    """
    if not parser:
        parser = argparse.ArgumentParser(
            prog=NAME,
            description=(
                "Write NoCloud seed files from the instance metadata service"
            ),
        )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default=settings.DEFAULT_OUTPUT_DIR,
        help=(
            "The output directory for NoCloud files. "
            f"Default is {settings.DEFAULT_OUTPUT_DIR}"
        ),
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=False,
        help="Show additional pre-action logging (default: %(default)s).",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version="%(prog)s " + (version.version_string()),
    )
    return parser


def check_output_dir(path):
    """Ensure path names an existing directory.

    @raises: ConfigurationError otherwise.
    """
    if not path:
        raise ConfigurationError("The output directory must be given")
    if not util.is_dir(path):
        raise ConfigurationError(
            "Output directory %s does not exist or is not a directory" % path
        )


def seed(output_dir, iface=settings.PRIMARY_INTERFACE):
    """Wait for networking, fetch metadata and write the seed files."""
    with EphemeralDHCPv4(iface):
        doc = vultr.get_metadata()
        md, netcfg = translate(doc)
        write_seed(md, netcfg, b"", output_dir)
    LOG.info("Wrote NoCloud seed files to %s", output_dir)


def handle_args(name, args):
    """Handle calls to 'nocloud-seed' cli.

    @return: 0 on success, 1 on error.
    """
    try:
        check_output_dir(args.output_dir)
    except ConfigurationError as e:
        return util.error(str(e))

    signal_handler.attach_handlers()
    try:
        seed(args.output_dir)
    except FATAL_ERRORS as e:
        log.logexc(LOG, "%s failed: %s", name, e, log_level=logging.ERROR)
        return 1
    return 0


def main(sysv_args=None):
    parser = get_parser()
    args = parser.parse_args(sysv_args)
    log.setup_basic_logging(logging.DEBUG if args.debug else logging.INFO)
    try:
        return handle_args(NAME, args)
    finally:
        log.flush_loggers(LOG)


if __name__ == "__main__":
    sys.exit(main())
