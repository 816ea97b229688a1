# This file is part of nocloud-seed. See LICENSE file for license information.
import logging
import signal
import sys
import types
from typing import Callable, Dict, Final, Union

from nocloudseed import version as vr

LOG = logging.getLogger(__name__)

EXIT_CODE: Final = 1
SIGNALS: Final[Dict[int, str]] = {
    signal.SIGINT: "nocloud-seed %(version)s received SIGINT, exiting",
    signal.SIGTERM: "nocloud-seed %(version)s received SIGTERM, exiting",
    signal.SIGABRT: "nocloud-seed %(version)s received SIGABRT, exiting",
}


def inspect_handler(sig: Union[int, Callable, None]) -> None:
    """inspect_handler() logs signal handler state"""
    if callable(sig):
        # only produce a log when the signal handler isn't in the expected
        # default state
        if not isinstance(sig, types.BuiltinFunctionType):
            LOG.info("Signal state [%s] - previously custom handler.", sig)
    elif sig == signal.SIG_IGN:
        LOG.info("Signal state [SIG_IGN] - previously ignored.")


def _handle_exit(signum, frame):
    # in practice we always receive a Signals object but int is possible
    msg = SIGNALS.get(signum, "nocloud-seed %(version)s received a signal")
    LOG.error(msg, {"version": vr.version_string()})
    # SystemExit unwinds the stack so context managers release what they own
    sys.exit(EXIT_CODE)


def attach_handlers():
    """attach nocloud-seed's handlers"""
    sigs_attached = 0
    for signum in SIGNALS.keys():
        inspect_handler(signal.signal(signum, _handle_exit))
        sigs_attached += 1
    return sigs_attached
