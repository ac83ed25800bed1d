"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves the files of one directory verbatim, as binary responses.

=============================================================================
HOW THE MOUNT WORKS
=============================================================================

The directory is scanned ONCE, when the mount is registered. Every
regular file found becomes its own GET route:

    mount_static(router, "/files", "/srv/data")

        /srv/data/
            notes.txt    →   GET /files/notes.txt    → StaticFileHandler(.../notes.txt)
            logo.png     →   GET /files/logo.png     → StaticFileHandler(.../logo.png)
            sub/         →   (directories are skipped)

Each handler carries the absolute path of its file, so nothing is looked
up from global state at request time, and no request path is ever
joined onto the filesystem: a request can only reach the files that
existed when the mount was made.

Files added to the directory after start-up are NOT served.

=============================================================================
ERRORS
=============================================================================

If the file cannot be read when requested (deleted, permissions
changed, disk error) the failure is logged and the client gets a 500.
The worker carries on with its next job.

=============================================================================
"""

import logging
from pathlib import Path
from typing import List, Union

from ..http.request import Request
from ..http.response import Response
from ..http.router import Router, Route
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Handler bound to one file.

    Reads the whole file into memory on every request and sends it with
    ``Response.send_binary``.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self, request: Request, response: Response) -> None:
        try:
            content = self.path.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read static file {self.path}: {e}")
            response.set_status(HTTPStatus.INTERNAL_SERVER_ERROR).send()
            return

        response.send_binary(content)

    def __repr__(self) -> str:
        return f"StaticFileHandler({str(self.path)!r})"


def mount_static(router: Router, prefix: str, directory: Union[str, Path]) -> List[Route]:
    """
    Register one GET route per regular file in ``directory``.

    Args:
        router: Router to register on.
        prefix: URL prefix ("/files"); a trailing slash is ignored.
        directory: Directory to scan (not recursive).

    Returns:
        The registered routes, in file-name order.

    Raises:
        NotADirectoryError: ``directory`` is not a directory.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"Static directory does not exist: {directory}")

    prefix = prefix.rstrip("/")
    routes = []

    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_file():
            continue
        if entry.name.startswith(":"):
            # would compile as a path parameter instead of a literal
            logger.warning(f"Skipping static file with reserved name: {entry.name}")
            continue
        routes.append(router.register("GET", f"{prefix}/{entry.name}", StaticFileHandler(entry)))

    logger.info(f"Mounted {len(routes)} static files from {root} at {prefix or '/'}")
    return routes
