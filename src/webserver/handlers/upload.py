"""
=============================================================================
UPLOAD HANDLER
=============================================================================

Accepts a POSTed image and stores it under the document root.

This is a deliberately small handler: the raw request body IS the payload.
Multipart form parsing is not implemented, so a browser form upload will
be stored including its multipart framing.

    POST /upload
    Content-Length: 5120

    <5120 bytes>  ──►  <document_root>/uploads/uploaded_image.jpg

    HTTP/1.1 200 OK
    Content-Type: text/plain
    Location: /uploads/uploaded_image.jpg

    Image uploaded successfully!

Every upload overwrites the same file. It is the only handler that writes
to disk.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Union

from ..http.errors import IOFailure, MalformedRequest
from ..http.request import HTTPRequest
from ..http.response import ResponseBuilder, ResponseWriter


logger = logging.getLogger(__name__)


UPLOAD_SUCCESS_MESSAGE = "Image uploaded successfully!"
UPLOAD_FAILED_MESSAGE = "Error handling image upload."
NO_PAYLOAD_MESSAGE = "No upload payload."


class UploadHandler:
    """
    Stores the request body as a single file under the document root.

    Usage:
        upload = UploadHandler("/srv/www")
        router.post("/upload", upload.handle)
    """

    def __init__(
        self,
        document_root: Union[str, Path],
        upload_dir: str = "uploads",
        upload_filename: str = "uploaded_image.jpg",
    ):
        self.document_root = Path(document_root)
        self.upload_dir = upload_dir
        self.upload_filename = upload_filename

    @property
    def target(self) -> Path:
        """Filesystem path the payload is written to."""
        return self.document_root / self.upload_dir / self.upload_filename

    @property
    def location(self) -> str:
        """URL path of the stored file."""
        return f"/{self.upload_dir.strip('/')}/{self.upload_filename}"

    def handle(self, request: HTTPRequest, writer: ResponseWriter) -> None:
        """
        Save the request body and acknowledge it.

        Raises:
            MalformedRequest: No body, or an empty one (400).
            IOFailure: The file could not be written (500).
        """
        payload = request.body
        if not payload:
            raise MalformedRequest(NO_PAYLOAD_MESSAGE, detail="Upload request has no body")

        target = self.target
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
        except OSError as e:
            raise IOFailure(UPLOAD_FAILED_MESSAGE, detail=f"Cannot write {target}: {e}") from e

        logger.info(
            f"Stored upload: {target} ({len(payload)} bytes, {request.content_type or 'no content type'})"
        )

        response = (ResponseBuilder()
            .text(UPLOAD_SUCCESS_MESSAGE)
            .header("Location", self.location)
            .build())
        writer.send(response)
