# This file is part of nocloud-seed. See LICENSE file for license information.

import yaml


class NoAliasSafeDumper(yaml.dumper.SafeDumper):
    """A class which avoids constructing anchors/aliases on yaml dump"""

    def ignore_aliases(self, data):
        return True


def dumps(obj, explicit_start=False, explicit_end=False, noalias=True):
    """Return data in block style yaml, keeping mapping order."""

    return yaml.dump(
        obj,
        line_break="\n",
        indent=2,
        explicit_start=explicit_start,
        explicit_end=explicit_end,
        default_flow_style=False,
        sort_keys=False,
        Dumper=(NoAliasSafeDumper if noalias else yaml.dumper.SafeDumper),
    )
