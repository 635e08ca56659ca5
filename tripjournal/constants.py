"""Constants and configuration for the trip journal."""


class JournalConstants:
    """Central configuration constants for the journal."""

    # Reserved link scheme for image-group links ("image://<groupID>")
    IMAGE_LINK_SCHEME = "image"
    IMAGE_LINK_PREFIX = IMAGE_LINK_SCHEME + "://"

    # Accent colour painted over link regions (RGB)
    LINK_ACCENT_COLOR = (255, 128, 0)

    # Default body font
    DEFAULT_FONT_NAME = "Helvetica"
    DEFAULT_FONT_SIZE = 17  # points

    # Serialized documents larger than this are not parsed (10MB)
    MAX_RTF_SIZE = 10 * 1024 * 1024

    # Preview and caption truncation
    TRUNCATE_LENGTH = 30
    TRUNCATE_SUFFIX = "..."
    EMPTY_ENTRY_PREVIEW = "New Note"

    # File operations
    ATOMIC_SAVE_PREFIX = "."  # Prefix for temporary save files
    ATOMIC_SAVE_SUFFIX = ".tmp"  # Suffix for temporary save files
    INDEX_FILENAME = "journal.json"
    DOCUMENTS_DIRNAME = "documents"
    IMAGES_DIRNAME = "images"

    # Image loading
    IMAGE_LOADER_WORKERS = 4

    # Application identity for platformdirs
    APP_NAME = "tripjournal"
