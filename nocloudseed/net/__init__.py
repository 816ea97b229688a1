# This file is part of nocloud-seed. See LICENSE file for license information.

import ipaddress
import json
import logging
import time
from typing import Callable, Iterable, List, Optional

from nocloudseed import subp

LOG = logging.getLogger(__name__)


class InterfaceLookupError(RuntimeError):
    """Raised when the addresses of an interface cannot be listed."""


def get_interface_addresses(ifname: str) -> List[str]:
    """Return addresses bound to ifname as 'address/prefixlen' strings.

    Addresses are returned in the order the kernel reports them.

    @raises: InterfaceLookupError if the interface does not exist or the
        output of ip cannot be understood.
    """
    try:
        out, _err = subp.subp(["ip", "-json", "addr", "show", "dev", ifname])
    except subp.ProcessExecutionError as e:
        raise InterfaceLookupError(
            "Error getting %s addresses: %s" % (ifname, e)
        ) from e

    try:
        links = json.loads(out)
    except ValueError as e:
        raise InterfaceLookupError(
            "Unable to parse addresses of %s: %s" % (ifname, e)
        ) from e
    if not isinstance(links, list):
        raise InterfaceLookupError(
            "Unexpected address listing for %s: %r" % (ifname, links)
        )

    addresses = []
    for link in links:
        for addr in link.get("addr_info", []):
            if not addr.get("local"):
                continue
            if "prefixlen" in addr:
                addresses.append("%s/%s" % (addr["local"], addr["prefixlen"]))
            else:
                addresses.append(addr["local"])
    return addresses


def select_ipv4_address(addresses: Iterable[str]) -> Optional[str]:
    """Return the first non-loopback IPv4 address in addresses.

    IPv4-mapped IPv6 addresses count as IPv4 and are returned in dotted form.
    """
    for address in addresses:
        try:
            ip = ipaddress.ip_address(address.split("/", 1)[0])
        except ValueError:
            LOG.debug("Ignoring unparseable address %s", address)
            continue
        if isinstance(ip, ipaddress.IPv6Address):
            if ip.ipv4_mapped is None:
                continue
            ip = ip.ipv4_mapped
        if ip.is_loopback:
            continue
        return str(ip)
    return None


def wait_for_ipv4_address(
    ifname: str,
    poll_interval: float = 5,
    on_found: Optional[Callable[[], None]] = None,
) -> str:
    """Block until ifname carries a usable IPv4 address and return it.

    There is no attempt cap and no timeout; the caller is expected to be
    killed externally if networking never comes up.

    @param ifname: Name of the interface to watch.
    @param poll_interval: Seconds to sleep between polls.
    @param on_found: Optional callable invoked once an address is seen.
        Exceptions it raises are logged and otherwise ignored.
    @raises: InterfaceLookupError, never retried.
    """
    LOG.info("Waiting for %s to get an IP address", ifname)
    while True:
        ip = select_ipv4_address(get_interface_addresses(ifname))
        if ip is not None:
            break
        LOG.info(
            "No IP address found, sleeping for %s seconds before trying again",
            poll_interval,
        )
        time.sleep(poll_interval)

    LOG.info("Found IP: %s", ip)
    if on_found is not None:
        try:
            on_found()
        except Exception as e:
            LOG.warning("Failed to run callback after finding IP: %s", e)
    return ip
