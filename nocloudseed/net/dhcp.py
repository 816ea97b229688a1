# This file is part of nocloud-seed. See LICENSE file for license information.

import logging
import subprocess
import threading
from contextlib import suppress
from typing import List, Optional

from nocloudseed import settings

LOG = logging.getLogger(__name__)


class NoDHCPLeaseError(Exception):
    """Raised when unable to get a DHCP lease."""


class NoDHCPLeaseMissingDhclientError(NoDHCPLeaseError):
    """Raised when dhclient cannot be launched at all."""


class Dhclient:
    """Supervise a single foreground dhclient attempt on one interface.

    The client only speeds up address assignment; nothing waits on its
    result.  It is started in the background and a daemon thread reaps it
    when it exits.  A non-zero exit is an ordinary outcome and only logged.
    """

    client_name = "dhclient"

    def __init__(self, interface: str, path: str = settings.DHCLIENT_PATH):
        self.interface = interface
        self.path = path
        self.exit_code: Optional[int] = None
        self._proc: Optional[subprocess.Popen] = None
        self._supervisor: Optional[threading.Thread] = None

    @property
    def command(self) -> List[str]:
        # one attempt, verbose, stay in the foreground
        return [self.path, "-1", "-v", "-d", self.interface]

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc is not None else None

    def start(self):
        """Launch dhclient and return without waiting for it.

        @raises: NoDHCPLeaseMissingDhclientError if the executable could not
            be launched (missing, not executable, ...).
        """
        if self._proc is not None:
            raise RuntimeError("%s already started" % self.client_name)
        LOG.info("Starting DHCP Client on %s", self.interface)
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise NoDHCPLeaseMissingDhclientError(
                "Error running %s: %s" % (self.client_name, e)
            ) from e
        self._supervisor = threading.Thread(
            target=self._supervise,
            name="%s-%s" % (self.client_name, self.interface),
            daemon=True,
        )
        self._supervisor.start()

    def _supervise(self):
        self.exit_code = self._proc.wait()
        if self.exit_code:
            LOG.debug(
                "%s exited with code: %s", self.client_name, self.exit_code
            )
        else:
            LOG.debug("%s exited", self.client_name)

    def running(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def stop(self):
        """Kill dhclient if it is still running.

        Safe to call repeatedly and before start(); the process is not
        waited for.
        """
        if self._proc is None or self._proc.returncode is not None:
            return
        LOG.debug("Killing %s with pid=%s", self.client_name, self._proc.pid)
        with suppress(ProcessLookupError):
            self._proc.kill()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Wait for the supervisor to reap dhclient, return its exit code."""
        if self._supervisor is not None:
            self._supervisor.join(timeout)
        return self.exit_code
