"""
=============================================================================
CONTENT-TYPE CLASSIFIER
=============================================================================

Maps a file name to the Content-Type header value sent with it.

=============================================================================
THE TABLE
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │   extension        Content-Type                                    │
    ├────────────────────────────────────────────────────────────────────┤
    │   html, htm   →    text/html                                       │
    │   jpg, jpeg   →    image/jpeg                                      │
    │   png         →    image/png                                       │
    │   (anything)  →    application/octet-stream                        │
    └────────────────────────────────────────────────────────────────────┘

The extension is whatever follows the LAST dot of the file name, compared
case-sensitively: "photo.JPG" is served as application/octet-stream.

The table is process-wide static configuration. It is wrapped in a
MappingProxyType so nothing can mutate it at runtime.

=============================================================================
"""

from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Union


CONTENT_TYPES: Mapping[str, str] = MappingProxyType({
    "html": "text/html",
    "htm": "text/html",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
})

# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def get_file_extension(file_name: Union[str, Path]) -> str:
    """
    Get the extension of a file name (without the dot).

    Only the final path component is examined, so a dot in a directory
    name does not count.

    Examples:
        >>> get_file_extension("index.html")
        'html'
        >>> get_file_extension("archive.tar.gz")
        'gz'
        >>> get_file_extension("README")
        ''
        >>> get_file_extension("/a.b/README")
        ''
    """
    name = Path(file_name).name
    index = name.rfind(".")
    if index == -1:
        return ""
    return name[index + 1:]


def get_content_type(file_name: Union[str, Path]) -> str:
    """
    Get the Content-Type for a file name.

    Pure function: no I/O, never fails.

    Examples:
        >>> get_content_type("page.htm")
        'text/html'
        >>> get_content_type("logo.png")
        'image/png'
        >>> get_content_type("notes.txt")
        'application/octet-stream'
    """
    return CONTENT_TYPES.get(get_file_extension(file_name), DEFAULT_CONTENT_TYPE)
