"""ToUnicode CMap parsing.

CMap streams are read with pdfminer.six, which handles bfchar and bfrange
sections, array destinations and ToUnicode streams that omit begincmap.
"""

import io
import logging

from pdfminer.cmapdb import CMapParser, FileUnicodeMap
from pdfminer.psparser import PSException

logger = logging.getLogger(__name__)


def parse_to_unicode(data: bytes) -> dict[int, str]:
    """Parse a ToUnicode CMap stream into a character code to text map.

    Args:
        data: Decoded CMap stream content.

    Returns:
        Mapping from character code to the Unicode text it represents, or an
        empty mapping if the stream cannot be parsed.
    """
    unicode_map = FileUnicodeMap()
    try:
        CMapParser(unicode_map, io.BytesIO(data)).run()
    except (PSException, TypeError, ValueError) as e:
        logger.warning(f"Ignoring unreadable ToUnicode CMap: {e}")
        return {}
    return dict(unicode_map.cid2unichr)
