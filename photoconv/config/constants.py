"""Constants for photoconv."""

# Application constants
APP_NAME = "photoconv"

# Default paths
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_LOG_DIR = ".logs"
DEFAULT_CONFIG_FILE = "photoconv.yaml"

# Output formats and the file extension each one is written with
OUTPUT_FORMATS = ["jpeg", "png", "pdf"]
OUTPUT_EXTENSIONS = {
    "jpeg": "jpg",
    "png": "png",
    "pdf": "pdf",
}

METADATA_POLICIES = ["strip", "keep_basic"]
CONFLICT_POLICIES = ["skip", "overwrite", "rename"]

# Input extensions accepted by the CLI
HEIF_EXTENSIONS = {".heic", ".heif"}
RASTER_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif", ".tif", ".tiff"}
SUPPORTED_EXTENSIONS = HEIF_EXTENSIONS | RASTER_EXTENSIONS

# Extensions removed from the input name when naming the output
STRIPPED_INPUT_EXTENSIONS = {".heic", ".heif", ".png", ".jpg", ".jpeg"}

# ISO-BMFF major brands that identify a HEIF still image
HEIF_BRANDS = {b"heic", b"heix", b"heim", b"heis", b"hevc", b"hevx", b"mif1", b"msf1"}

# Encoding defaults
DEFAULT_OUTPUT_FORMAT = "jpeg"
DEFAULT_JPEG_QUALITY = 90
DEFAULT_METADATA_POLICY = "strip"

# Quality search: fixed budget over [min, max]
QUALITY_SEARCH_MIN = 0.10
QUALITY_SEARCH_MAX = 1.00
QUALITY_SEARCH_ITERATIONS = 10

# Thumbnail attached to each converted file
DEFAULT_THUMBNAIL_SIZE = 64
DEFAULT_THUMBNAIL_QUALITY = 80

# Single-page document (A4 in PDF points)
PDF_PAGE_WIDTH = 595.28
PDF_PAGE_HEIGHT = 841.89

# Size units for target sizes
SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
}

# Orientation codes (EXIF 0x0112) and their display labels
ORIENTATION_LABELS = {
    1: "Normal",
    2: "Flip horizontal",
    3: "Rotate 180°",
    4: "Flip vertical",
    5: "Transpose",
    6: "Rotate 90° CW",
    7: "Transverse",
    8: "Rotate 90° CCW",
}
SWAPPED_ORIENTATIONS = {5, 6, 7, 8}
