"""Find the generated image inside an image service response.

The response shape follows the Gemini ``generate_content`` result::

    response.candidates[i].content.parts[j].inline_data.{data, mime_type}

Attributes are read with ``getattr`` so both SDK objects and simple stand-ins
are accepted.  Inline data may be raw bytes (SDK) or already base64 text.
"""

import base64
import logging

from .errors import NoImageDataError

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/png"


def _encode_payload(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(bytes(data)).decode("ascii")
    return str(data)


def extract_image_data_uri(response) -> str:
    """Return the first inline image of *response* as a ``data:`` URI.

    Candidates are scanned in order, and within each candidate its content
    parts are scanned in order.

    Raises:
        NoImageDataError: If no part carries inline data.
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data is not None else None
            if not data:
                continue
            mime_type = getattr(inline_data, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE
            return f"data:{mime_type};base64,{_encode_payload(data)}"

    logger.warning("Image service response contained no inline image data")
    raise NoImageDataError()
