# This file is part of nocloud-seed. See LICENSE file for license information.

import yaml

from nocloudseed import safeyaml


class TestDumps:
    def test_keeps_key_order_in_block_style(self):
        data = {"version": 2, "config": [{"type": "physical", "mtu": 1450}]}
        assert (
            "version: 2\nconfig:\n- type: physical\n  mtu: 1450\n"
            == safeyaml.dumps(data)
        )

    def test_empty_list_is_flow_style(self):
        assert "config: []\n" == safeyaml.dumps({"config": []})

    def test_no_aliases_for_repeated_objects(self):
        subnet = {"type": "static"}
        dumped = safeyaml.dumps({"a": subnet, "b": subnet})
        assert "&" not in dumped
        assert {"a": subnet, "b": subnet} == yaml.safe_load(dumped)

    def test_explicit_start_and_end(self):
        dumped = safeyaml.dumps(
            {"a": 1}, explicit_start=True, explicit_end=True
        )
        assert dumped.startswith("---")
        assert dumped.rstrip().endswith("...")
