# This file is part of nocloud-seed. See LICENSE file for license information.

import json
import logging
import os
import sys
from typing import Union

LOG = logging.getLogger(__name__)


def decode_binary(blob: Union[str, bytes], encoding="utf-8") -> str:
    # Converts a binary type into a text type using given encoding.
    return blob if isinstance(blob, str) else blob.decode(encoding=encoding)


def encode_text(text: Union[str, bytes], encoding="utf-8") -> bytes:
    # Converts a text string into a binary type using given encoding.
    return text if isinstance(text, bytes) else text.encode(encoding=encoding)


def load_json(text, root_types=(dict,)):
    decoded = json.loads(decode_binary(text))
    if not isinstance(decoded, tuple(root_types)):
        expected_types = ", ".join([str(t) for t in root_types])
        raise TypeError(
            "(%s) root types expected, got %s instead"
            % (expected_types, type(decoded))
        )
    return decoded


def json_dumps(data):
    """Return data in nicely formatted json, keeping key order."""
    return json.dumps(data, indent=1, separators=(",", ": "))


def is_dir(path) -> bool:
    return bool(path) and os.path.isdir(path)


def error(msg, rc=1, fmt="Error:\n{}", sys_exit=False):
    r"""
    Print error to stderr and return or exit

    @param msg: message to print
    @param rc: return code (default: 1)
    @param fmt: format string for putting message in (default: 'Error:\n {}')
    @param sys_exit: exit when called (default: false)
    """
    print(fmt.format(msg), file=sys.stderr)
    if sys_exit:
        sys.exit(rc)
    return rc
