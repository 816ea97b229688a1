# This file is part of nocloud-seed. See LICENSE file for license information.

# Vultr Metadata API:
# https://www.vultr.com/metadata/

import copy
import json

import pytest
import requests
import responses

from nocloudseed import settings
from nocloudseed.sources import vultr
from nocloudseed.url_helper import UrlError

# Vultr metadata test data
VULTR_V1 = {
    "hostname": "CLOUDINIT_2",
    "instanceid": "42872224",
    "interfaces": [
        {
            "ipv4": {
                "additional": [],
                "address": "45.76.7.171",
                "gateway": "45.76.6.1",
                "netmask": "255.255.254.0",
            },
            "mac": "56:00:03:1b:4e:ca",
            "network-type": "public",
        },
        {
            "ipv4": {
                "additional": [],
                "address": "10.1.112.3",
                "gateway": "",
                "netmask": "255.255.240.0",
            },
            "mac": "5a:00:03:1b:4e:ca",
            "network-type": "private",
            "networkid": "net5e7155329d730",
        },
    ],
    "public-keys": "ssh-rsa AAAAB3NzaC1y...IQQhv5PAOKaIl+mM3c= test3@key\n",
    "region": {"regioncode": "EWR", "countrycode": "US"},
    "user-defined": [],
}


class TestProviderMetadataDocument:
    def test_from_dict(self):
        doc = vultr.ProviderMetadataDocument.from_dict(VULTR_V1)
        assert "CLOUDINIT_2" == doc.hostname
        assert "42872224" == doc.instance_id
        assert "EWR" == doc.region_code
        assert VULTR_V1["public-keys"] == doc.public_keys
        assert 2 == len(doc.interfaces)
        assert (
            vultr.ProviderInterface(
                mac="5a:00:03:1b:4e:ca",
                network_type="private",
                network_id="net5e7155329d730",
                ipv4=vultr.ProviderIPv4(
                    address="10.1.112.3", gateway="", netmask="255.255.240.0"
                ),
            )
            == doc.interfaces[1]
        )
        assert "" == doc.interfaces[0].network_id

    def test_missing_keys_decode_to_empty_values(self):
        doc = vultr.ProviderMetadataDocument.from_dict({})
        assert vultr.ProviderMetadataDocument() == doc
        assert () == doc.interfaces

    def test_null_values_decode_to_empty_values(self):
        doc = vultr.ProviderMetadataDocument.from_dict(
            {"hostname": None, "interfaces": None, "region": None}
        )
        assert "" == doc.hostname
        assert () == doc.interfaces

    def test_public_keys_list_is_joined(self):
        md = copy.deepcopy(VULTR_V1)
        md["public-keys"] = ["keyA", "keyB"]
        doc = vultr.ProviderMetadataDocument.from_dict(md)
        assert "keyA\nkeyB" == doc.public_keys

    @pytest.mark.parametrize(
        "update",
        (
            pytest.param({"hostname": 42}, id="hostname_not_string"),
            pytest.param({"interfaces": {}}, id="interfaces_not_list"),
            pytest.param({"interfaces": ["eth0"]}, id="interface_not_dict"),
            pytest.param({"region": "EWR"}, id="region_not_dict"),
            pytest.param({"public-keys": [1, 2]}, id="keys_not_strings"),
            pytest.param(
                {"interfaces": [{"ipv4": "10.0.0.1"}]}, id="ipv4_not_dict"
            ),
        ),
    )
    def test_wrong_types_raise(self, update):
        md = copy.deepcopy(VULTR_V1)
        md.update(update)
        with pytest.raises(vultr.MetadataError, match="Invalid metadata"):
            vultr.ProviderMetadataDocument.from_dict(md)


class TestGetMetadata:
    def test_fetches_and_decodes(self, mocked_responses):
        mocked_responses.add(
            responses.GET, settings.METADATA_URL, json=VULTR_V1
        )
        doc = vultr.get_metadata()
        assert vultr.ProviderMetadataDocument.from_dict(VULTR_V1) == doc
        assert 1 == len(mocked_responses.calls)

    def test_non_200_includes_body(self, mocked_responses):
        mocked_responses.add(
            responses.GET,
            settings.METADATA_URL,
            body="metadata service unavailable",
            status=500,
        )
        with pytest.raises(vultr.MetadataError) as excinfo:
            vultr.get_metadata()
        assert "metadata service unavailable" in str(excinfo.value)
        assert "(500)" in str(excinfo.value)
        assert 1 == len(mocked_responses.calls)

    def test_non_200_success_code_is_rejected(self, mocked_responses):
        mocked_responses.add(
            responses.GET, settings.METADATA_URL, json=VULTR_V1, status=203
        )
        with pytest.raises(vultr.MetadataError, match=r"\(203\)"):
            vultr.get_metadata()

    def test_body_is_decoded_as_utf8(self, mocked_responses):
        md = copy.deepcopy(VULTR_V1)
        md["hostname"] = "h\u00f4te-\u00e9t\u00e9"
        # text/plain without a charset would default to ISO-8859-1
        mocked_responses.add(
            responses.GET,
            settings.METADATA_URL,
            body=json.dumps(md, ensure_ascii=False).encode("utf-8"),
            content_type="text/plain",
        )
        assert "h\u00f4te-\u00e9t\u00e9" == vultr.get_metadata().hostname

    @pytest.mark.parametrize(
        "body",
        (
            pytest.param("{not json", id="malformed"),
            pytest.param(json.dumps(["list"]), id="wrong_root_type"),
            pytest.param(json.dumps({"hostname": 1}), id="wrong_field_type"),
        ),
    )
    def test_undecodable_body_raises(self, mocked_responses, body):
        mocked_responses.add(
            responses.GET, settings.METADATA_URL, body=body
        )
        with pytest.raises(vultr.MetadataError):
            vultr.get_metadata()

    def test_timeout_is_not_retried(self, mocked_responses):
        mocked_responses.add(
            responses.GET,
            settings.METADATA_URL,
            body=requests.exceptions.ConnectTimeout("timed out"),
        )
        with pytest.raises(UrlError, match="timed out"):
            vultr.get_metadata(timeout=1)
        assert 1 == len(mocked_responses.calls)

    def test_custom_url(self, mocked_responses):
        url = "http://127.0.0.1:8080/v1.json"
        mocked_responses.add(responses.GET, url, json=VULTR_V1)
        assert "CLOUDINIT_2" == vultr.get_metadata(url=url).hostname
