# This file is part of nocloud-seed. See LICENSE file for license information.

import logging
import socket
import threading
import time
from contextlib import suppress
from typing import Any, Mapping, Optional

import requests
from requests import exceptions

from nocloudseed import version

LOG = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class UrlResponse:
    def __init__(self, response: requests.Response, contents: bytes):
        self._response = response
        self._contents = contents

    @property
    def contents(self) -> bytes:
        return self._contents

    @property
    def code(self) -> int:
        return self._response.status_code

    def __str__(self):
        return self._contents.decode("utf-8", "replace")


class UrlError(IOError):
    def __init__(
        self,
        cause: Any,  # This SHOULD be an exception to wrap, but can be anything
        code: Optional[int] = None,
        headers: Optional[Mapping] = None,
        url: Optional[str] = None,
    ):
        IOError.__init__(self, str(cause))
        self.cause = cause
        self.code = code
        self.headers: Mapping = {} if headers is None else headers
        self.url = url


def _abort_read(response: requests.Response, expired: threading.Event):
    """Wake up a reader blocked on the response socket."""
    expired.set()
    conn = getattr(response.raw, "connection", None)
    sock = getattr(conn, "sock", None)
    if sock is None:
        LOG.debug("No socket to shut down for %s", response.url)
        return
    with suppress(OSError):
        sock.shutdown(socket.SHUT_RDWR)


def _read_body(response: requests.Response, deadline: Optional[float], url):
    """Read the streamed body, aborting once deadline has passed.

    A watchdog shuts the socket down when the deadline passes, so a server
    trickling the body cannot hold the read open past it.
    """
    expired = threading.Event()
    watchdog = None
    if deadline is not None:
        watchdog = threading.Timer(
            max(deadline - time.monotonic(), 0),
            _abort_read,
            args=(response, expired),
        )
        watchdog.daemon = True
        watchdog.start()

    chunks = []
    try:
        for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
            if deadline is not None and time.monotonic() > deadline:
                expired.set()
            if expired.is_set():
                break
            chunks.append(chunk)
    except exceptions.RequestException:
        # a shut down socket surfaces as a truncated read
        if not expired.is_set():
            raise
    finally:
        if watchdog is not None:
            watchdog.cancel()

    if expired.is_set():
        raise UrlError(
            "Timed out reading response body from %s" % url,
            code=response.status_code,
            headers=response.headers,
            url=url,
        )
    return b"".join(chunks)


def readurl(
    url,
    *,
    timeout=None,
    headers=None,
    check_status=True,
    allow_redirects=True,
    session=None,
) -> UrlResponse:
    """Issue a single GET request and read the full response.

    :param url: Mandatory url to request.
    :param timeout: Overall deadline in seconds covering connection, request
        and reading the whole body. None waits forever.
    :param headers: Optional dict of headers to send during request
    :param check_status: Optional boolean set True to raise UrlError when the
        response carries an HTTP error status. Default: True.
    :param allow_redirects: Optional boolean passed straight to
        Session.request as 'allow_redirects'. Default: True.
    :param session: Optional exiting requests.Session instance to reuse.

    :raises UrlError: on transport failures, timeouts and, when check_status
        is set, on HTTP error statuses.
    """
    req_args = {
        "url": url,
        "method": "GET",
        "stream": True,
        "allow_redirects": allow_redirects,
    }
    deadline = None
    if timeout is not None:
        req_args["timeout"] = max(float(timeout), 0)
        deadline = time.monotonic() + req_args["timeout"]

    if headers is not None:
        headers = headers.copy()
    else:
        headers = {}
    if "User-Agent" not in headers:
        headers["User-Agent"] = "nocloud-seed/%s" % version.version_string()
    req_args["headers"] = headers

    if session is None:
        session = requests.Session()

    LOG.debug("Opening '%s' with %s configuration", url, req_args)
    try:
        with session.request(**req_args) as response:
            contents = _read_body(response, deadline, url)
            if check_status:
                response.raise_for_status()
    except exceptions.HTTPError as e:
        raise UrlError(
            e,
            code=e.response.status_code,
            headers=e.response.headers,
            url=url,
        ) from e
    except exceptions.RequestException as e:
        raise UrlError(e, url=url) from e

    LOG.debug(
        "Read from %s (%s, %sb)", url, response.status_code, len(contents)
    )
    return UrlResponse(response, contents)
