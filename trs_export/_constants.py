"""Common literal values used across trs_export.

These constants keep page geometry, data URI prefixes, and API defaults in one
place so the exporter, the paginator, and tests import the same values without
drifting. Intended for internal use within the trs_export package.

Examples
--------
>>> from trs_export import _constants
>>> _constants.LETTER_WIDTH_IN - 2 * _constants.PAGE_MARGIN_IN
7.5
>>> _constants.CORS_PROXY_TEMPLATE.format(url="x")
'https://corsproxy.io/?x'
"""

LETTER_WIDTH_IN = 8.5
LETTER_HEIGHT_IN = 11.0
PAGE_MARGIN_IN = 0.5
POINTS_PER_INCH = 72

RASTER_SCALE = 2.0
DOWNLOAD_JPEG_QUALITY = 0.9
BLOB_JPEG_QUALITY = 0.95
INLINE_JPEG_QUALITY = 0.8

# 210mm x 297mm at 96 CSS px per inch
HOST_VIEWPORT_WIDTH = 794
HOST_VIEWPORT_HEIGHT = 1123

DATA_URI_PREFIX = "data:"
SVG_DATA_URI_PREFIX = "data:image/svg+xml;base64,"
SVG_MIME = "image/svg+xml"
CORS_PROXY_TEMPLATE = "https://corsproxy.io/?{url}"

DEFAULT_FILENAME = "document.pdf"
DEFAULT_API_BASE = "https://trs-api.tekjuice.xyz/api"
TAILWIND_CDN = "https://cdn.tailwindcss.com"
