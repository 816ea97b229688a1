# This file is part of nocloud-seed. See LICENSE file for license information.

"""Module for ephemeral network context managers
"""
import logging
from typing import Optional

import nocloudseed.net as net
from nocloudseed import settings
from nocloudseed.net.dhcp import Dhclient

LOG = logging.getLogger(__name__)


class EphemeralDHCPv4:
    """Context manager which waits for the interface to get an address.

    A dhclient attempt is run in the background while the interface is
    polled.  It is killed as soon as an address shows up and again on
    context exit, whichever way the context is left.
    """

    def __init__(
        self,
        iface: str = settings.PRIMARY_INTERFACE,
        poll_interval: float = settings.POLL_INTERVAL,
        dhclient: Optional[Dhclient] = None,
    ):
        self.iface = iface
        self.poll_interval = poll_interval
        self.dhclient = dhclient or Dhclient(iface)
        self.ip: Optional[str] = None

    def __enter__(self):
        self.dhclient.start()
        try:
            self.ip = net.wait_for_ipv4_address(
                self.iface,
                poll_interval=self.poll_interval,
                on_found=self.dhclient.stop,
            )
        except BaseException:
            self.clean_network()
            raise
        return self.ip

    def __exit__(self, excp_type, excp_value, excp_traceback):
        """Teardown the dhclient, whichever path left the context."""
        self.clean_network()

    def clean_network(self):
        self.dhclient.stop()
