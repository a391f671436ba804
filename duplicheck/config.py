"""
Configuration constants for duplicheck.
"""

# --- File Category Definitions ---
VIDEO_EXTS = {'mp4', 'mkv', 'avi', 'mov', 'wmv', 'm4v', 'flv', 'webm', 'mpeg',
              '3gp', 'm4p', 'm2ts', 'mts', 'vob', 'ogv'}
IMAGE_EXTS = {'jpg', 'jpeg', 'png', 'gif', 'bmp', 'tiff', 'svg', 'webp', 'ico'}
DOCUMENT_EXTS = {'pdf', 'doc', 'docx', 'xls', 'xlsx', 'ppt', 'pptx', 'txt', 'rtf',
                 'odt', 'ods', 'odp', 'csv', 'tsv', 'epub', 'md'}

CATEGORIES = ('video', 'image', 'document', 'other')

# Extension to Category Mapping
# Extensions are stored lower-cased and without the leading dot
EXT_TO_CATEGORY = {}
for ext in VIDEO_EXTS: EXT_TO_CATEGORY[ext] = 'video'
for ext in IMAGE_EXTS: EXT_TO_CATEGORY[ext] = 'image'
for ext in DOCUMENT_EXTS: EXT_TO_CATEGORY[ext] = 'document'

# --- Hashing ---
HASH_CHUNK_SIZE = 1024 * 1024  # 1 MB chunks for reading

# --- Scan Pipeline ---
DEFAULT_MAX_WORKERS = 5
DEFAULT_BATCH_SIZE = 100
RECORD_QUEUE_SIZE = 1000
ERROR_QUEUE_SIZE = 100

# --- Database ---
DEFAULT_DB_NAME = "duplicheck.db"
LOG_FILE_NAME = "duplicheck.log"
BUSY_TIMEOUT_MS = 5000

# --- Listing ---
DEFAULT_ITEMS_PER_PAGE = 50

# ANSI colour used for record prefixes on the console
PREFIX_COLOR = "\033[33m"
COLOR_RESET = "\033[0m"
