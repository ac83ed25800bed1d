"""
=============================================================================
BASIC HANDLERS
=============================================================================

Small handlers the CLI registers by default:

    GET  /                  200, empty body
    GET  /echo/:str         text/plain echo of the path parameter
    GET  /user-agent        text/plain echo of the User-Agent header
    POST /files/:fileName   store the request body in the upload directory

They double as examples of the handler contract: take (request,
response), finish with exactly one terminal call on every code path.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..http.request import Request
from ..http.response import Response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


def index(request: Request, response: Response) -> None:
    """Empty 200: the server is up."""
    response.set_status(HTTPStatus.OK).send()


def echo(request: Request, response: Response) -> None:
    response.send_text(request.params.get("str", ""))


def user_agent(request: Request, response: Response) -> None:
    response.send_text(request.user_agent)


class FileUploadHandler:
    """
    Writes the request body to ``<directory>/<fileName>``.

    The directory is fixed when the handler is created. When none was
    given, the request's ``static_dir`` (the server's static mount) is
    used; with neither, the route answers 404.

    =========================================================================
    RESPONSES
    =========================================================================

        201 Created   body written (an absent body writes an empty file)
        404 Not Found no directory configured, the directory does not
                      exist, or the name escapes it
        500           the file could not be written

    =========================================================================
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None, param: str = "fileName"):
        self.directory = Path(directory) if directory is not None else None
        self.param = param

    def _target_dir(self, request: Request) -> Optional[Path]:
        if self.directory is not None:
            return self.directory
        if request.static_dir:
            return Path(request.static_dir)
        return None

    def __call__(self, request: Request, response: Response) -> None:
        directory = self._target_dir(request)
        if directory is None:
            response.set_status(HTTPStatus.NOT_FOUND).send()
            return

        root = directory.resolve()
        if not root.is_dir():
            logger.warning(f"Upload directory {root} does not exist")
            response.set_status(HTTPStatus.NOT_FOUND).send()
            return
        target =(root / request.params.get(self.param, "")).resolve()

        # Resolved target must stay strictly inside the upload directory
        try:
            target.relative_to(root)
        except ValueError:
            logger.warning(f"Rejected upload outside {root}: {request.params.get(self.param)!r}")
            response.set_status(HTTPStatus.NOT_FOUND).send()
            return
        if target == root:
            response.set_status(HTTPStatus.NOT_FOUND).send()
            return

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(request.body or b"")
        except OSError as e:
            logger.error(f"Cannot write upload {target}: {e}")
            response.set_status(HTTPStatus.INTERNAL_SERVER_ERROR).send()
            return

        logger.info(f"Stored {len(request.body or b'')} bytes in {target}")
        response.set_status(HTTPStatus.CREATED).send()
