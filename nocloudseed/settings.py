# This file is part of nocloud-seed. See LICENSE file for license information.

# Where the NoCloud datasource of the provisioning agent looks for seeds
DEFAULT_OUTPUT_DIR = "/var/lib/cloud/seed/nocloud/"

# The primary interface is an environment assumption, not configurable
PRIMARY_INTERFACE = "eth0"

METADATA_URL = "http://169.254.169.254/v1.json"
METADATA_TIMEOUT = 120

# Seconds between checks of the primary interface for an address
POLL_INTERVAL = 5

DHCLIENT_PATH = "/usr/sbin/dhclient"

# Values the provider has no equivalent for
METADATA_UNKNOWN = "unknown"

NETWORK_CONFIG_VERSION = 2
PRIVATE_NETWORK_TYPE = "private"
PRIVATE_INTERFACE_MTU = 1450

META_DATA_FILE = "meta-data"
NETWORK_CONFIG_FILE = "network-config"
USER_DATA_FILE = "user-data"

SEED_FILE_MODE = 0o644
