# This file is part of nocloud-seed. See LICENSE file for license information.

import logging
import os
import tempfile

from nocloudseed import util

_DEF_PERMS = 0o644
LOG = logging.getLogger(__name__)


def write_file(filename, content, mode=_DEF_PERMS, omode="wb"):
    """open filename in mode omode, write content, set permissions to mode"""

    if "b" in omode:
        content = util.encode_text(content)
    else:
        content = util.decode_binary(content)

    tf = None
    try:
        dirname = os.path.dirname(filename)
        tf = tempfile.NamedTemporaryFile(dir=dirname, delete=False, mode=omode)
        LOG.debug(
            "Atomically writing to file %s (via temporary file %s) - %s: [%o]"
            " %d bytes/chars",
            filename,
            tf.name,
            omode,
            mode,
            len(content),
        )
        tf.write(content)
        tf.close()
        os.chmod(tf.name, mode)
        os.rename(tf.name, filename)
    except Exception as e:
        if tf is not None:
            os.unlink(tf.name)
        raise e
