# This file is part of nocloud-seed. See LICENSE file for license information.

# Vultr Metadata API:
# https://www.vultr.com/metadata/

import logging
from typing import Any, Mapping, NamedTuple, Tuple

from nocloudseed import settings, url_helper, util

LOG = logging.getLogger(__name__)


class MetadataError(RuntimeError):
    """Raised when the metadata service answers with something unusable."""


def _get(data: Mapping, key: str, kind: type, default: Any):
    """Return data[key] checked against kind, default when absent or null."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise MetadataError(
            "Invalid metadata: %s is %s, expected %s"
            % (key, type(value).__name__, kind.__name__)
        )
    return value


class ProviderIPv4(NamedTuple):
    address: str = ""
    gateway: str = ""
    netmask: str = ""

    @classmethod
    def from_dict(cls, data: Mapping) -> "ProviderIPv4":
        return cls(
            address=_get(data, "address", str, ""),
            gateway=_get(data, "gateway", str, ""),
            netmask=_get(data, "netmask", str, ""),
        )


class ProviderInterface(NamedTuple):
    mac: str = ""
    network_type: str = ""
    network_id: str = ""
    ipv4: ProviderIPv4 = ProviderIPv4()

    @classmethod
    def from_dict(cls, data: Mapping) -> "ProviderInterface":
        return cls(
            mac=_get(data, "mac", str, ""),
            network_type=_get(data, "network-type", str, ""),
            network_id=_get(data, "networkid", str, ""),
            ipv4=ProviderIPv4.from_dict(_get(data, "ipv4", dict, {})),
        )


class ProviderMetadataDocument(NamedTuple):
    """The subset of the v1.json document this tool understands."""

    hostname: str = ""
    instance_id: str = ""
    region_code: str = ""
    public_keys: str = ""
    interfaces: Tuple[ProviderInterface, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping) -> "ProviderMetadataDocument":
        """Build a document from decoded json.

        Absent keys decode to empty values; values of the wrong json type
        raise MetadataError.
        """
        interfaces = []
        for iface in _get(data, "interfaces", list, []):
            if not isinstance(iface, dict):
                raise MetadataError(
                    "Invalid metadata: interface entry is %s, expected dict"
                    % type(iface).__name__
                )
            interfaces.append(ProviderInterface.from_dict(iface))
        region = _get(data, "region", dict, {})
        public_keys = data.get("public-keys")
        # Newer metadata revisions serve the keys as a list
        if isinstance(public_keys, list) and all(
            isinstance(key, str) for key in public_keys
        ):
            public_keys = "\n".join(public_keys)
        else:
            public_keys = _get(data, "public-keys", str, "")
        return cls(
            hostname=_get(data, "hostname", str, ""),
            instance_id=_get(data, "instanceid", str, ""),
            region_code=_get(region, "regioncode", str, ""),
            public_keys=public_keys,
            interfaces=tuple(interfaces),
        )


def read_metadata(
    url=settings.METADATA_URL, timeout=settings.METADATA_TIMEOUT
) -> bytes:
    """Fetch the metadata document once, without retries.

    @raises: UrlError on transport failures or timeouts, MetadataError when
        the service does not answer 200.
    """
    LOG.info("Sending request to %s", url)
    response = url_helper.readurl(url, timeout=timeout, check_status=False)
    if response.code != 200:
        raise MetadataError(
            "invalid response from metadata service (%s): %s"
            % (response.code, response)
        )
    return response.contents


def parse_metadata(content) -> ProviderMetadataDocument:
    try:
        data = util.load_json(content)
    except (ValueError, TypeError) as e:
        raise MetadataError("error json unmarshalling metadata: %s" % e) from e
    return ProviderMetadataDocument.from_dict(data)


def get_metadata(
    url=settings.METADATA_URL, timeout=settings.METADATA_TIMEOUT
) -> ProviderMetadataDocument:
    """Fetch and decode the provider metadata document."""
    return parse_metadata(read_metadata(url, timeout))
