# This file is part of nocloud-seed. See LICENSE file for license information.

"""Translate provider metadata into NoCloud seed files.

The NoCloud datasource reads three files from its seed directory:

    meta-data       json (a yaml subset) describing the instance
    network-config  network config version 2 yaml
    user-data       opaque user data, empty here
"""

import logging
import os
from typing import Iterable, NamedTuple, Tuple

from nocloudseed import atomic_helper, safeyaml, settings, util
from nocloudseed.sources.vultr import (
    ProviderInterface,
    ProviderMetadataDocument,
)

LOG = logging.getLogger(__name__)


class ArtifactWriteError(IOError):
    """Raised when a seed file cannot be written."""


class NeutralMetadata(NamedTuple):
    ami_id: str
    instance_id: str
    region: str
    availability_zone: str
    tags: Tuple[str, ...]
    public_keys: Tuple[str, ...]
    hostname: str
    local_hostname: str


class NeutralSubnet(NamedTuple):
    type: str
    address: str
    netmask: str


class NeutralNetworkInterface(NamedTuple):
    type: str
    name: str
    mac_address: str
    subnets: Tuple[NeutralSubnet, ...]
    mtu: int


class NeutralNetworkConfig(NamedTuple):
    version: int
    config: Tuple[NeutralNetworkInterface, ...]


def split_public_keys(block: str) -> Tuple[str, ...]:
    return tuple(key for key in block.split("\n") if key)


def convert_metadata(doc: ProviderMetadataDocument) -> NeutralMetadata:
    return NeutralMetadata(
        ami_id=settings.METADATA_UNKNOWN,
        instance_id=doc.instance_id,
        region=doc.region_code,
        availability_zone=settings.METADATA_UNKNOWN,
        tags=(),
        public_keys=split_public_keys(doc.public_keys),
        hostname=doc.hostname,
        local_hostname=doc.hostname,
    )


def convert_network_config(
    interfaces: Iterable[ProviderInterface],
) -> NeutralNetworkConfig:
    """Describe the private interfaces as static physical links.

    Names come from the position in the unfiltered provider list so they
    stay stable when public interfaces are skipped.  Anything that is not
    private is left to DHCP and not described at all.
    """
    config = []
    for index, iface in enumerate(interfaces):
        if iface.network_type != settings.PRIVATE_NETWORK_TYPE:
            continue
        config.append(
            NeutralNetworkInterface(
                type="physical",
                name="eth%d" % index,
                mac_address=iface.mac,
                subnets=(
                    NeutralSubnet(
                        type="static",
                        address=iface.ipv4.address,
                        netmask=iface.ipv4.netmask,
                    ),
                ),
                mtu=settings.PRIVATE_INTERFACE_MTU,
            )
        )
    return NeutralNetworkConfig(
        version=settings.NETWORK_CONFIG_VERSION, config=tuple(config)
    )


def translate(
    doc: ProviderMetadataDocument,
) -> Tuple[NeutralMetadata, NeutralNetworkConfig]:
    return convert_metadata(doc), convert_network_config(doc.interfaces)


def metadata_to_dict(md: NeutralMetadata) -> dict:
    return {
        "ami-id": md.ami_id,
        "instance-id": md.instance_id,
        "region": md.region,
        "availability-zone": md.availability_zone,
        "tags": list(md.tags),
        "public-keys": list(md.public_keys),
        "hostname": md.hostname,
        "local-hostname": md.local_hostname,
    }


def network_config_to_dict(netcfg: NeutralNetworkConfig) -> dict:
    return {
        "version": netcfg.version,
        "config": [
            {
                "type": iface.type,
                "name": iface.name,
                "mac_address": iface.mac_address,
                "subnets": [subnet._asdict() for subnet in iface.subnets],
                "mtu": iface.mtu,
            }
            for iface in netcfg.config
        ],
    }


def _write(outdir: str, fname: str, content, description: str):
    path = os.path.join(outdir, fname)
    LOG.info("Writing %s to %s", description, path)
    try:
        atomic_helper.write_file(path, content, mode=settings.SEED_FILE_MODE)
    except OSError as e:
        raise ArtifactWriteError(
            "Error writing %s file %s: %s" % (description, path, e)
        ) from e


def write_metadata(md: NeutralMetadata, outdir: str):
    _write(
        outdir,
        settings.META_DATA_FILE,
        util.json_dumps(metadata_to_dict(md)),
        "metadata",
    )


def write_network_config(netcfg: NeutralNetworkConfig, outdir: str):
    _write(
        outdir,
        settings.NETWORK_CONFIG_FILE,
        safeyaml.dumps(network_config_to_dict(netcfg)),
        "network config",
    )


def write_userdata(userdata: bytes, outdir: str):
    _write(outdir, settings.USER_DATA_FILE, userdata, "user data")


def write_seed(
    md: NeutralMetadata,
    netcfg: NeutralNetworkConfig,
    userdata: bytes,
    outdir: str,
):
    """Write meta-data, network-config and user-data, in that order.

    The first failure aborts the remaining writes; files already written
    are left in place.
    """
    write_metadata(md, outdir)
    write_network_config(netcfg, outdir)
    write_userdata(userdata, outdir)
