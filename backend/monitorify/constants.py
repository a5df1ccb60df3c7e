"""Application-wide constants."""

# Job type values
class JobType:
    """Job type constants."""
    SCREENSHOT = "screenshot"
    URL2PDF = "url2pdf"


# Job status values
class JobStatus:
    """Job status constants."""
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


# Monitor status values
class MonitorStatus:
    """Monitor status constants."""
    UNKNOWN = "unknown"
    UP = "up"
    DOWN = "down"
    PAUSED = "paused"


GUEST_KEY_PREFIX = "guest_"

# Monitor limits
MAX_MONITORS_PER_PROJECT = 5
MONITOR_METHODS = ("GET", "HEAD")
MIN_INTERVAL_SEC = 60
MAX_INTERVAL_SEC = 86400
DEFAULT_INTERVAL_SEC = 900
MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 120000
DEFAULT_TIMEOUT_MS = 30000
MAX_MONITOR_NAME_LENGTH = 120
MAX_MONITOR_HEADERS = 30
MAX_HEADER_KEY_LENGTH = 60
MAX_HEADER_VALUE_LENGTH = 2000

# Generated artifact filename prefixes
SCREENSHOT_PREFIX = "shot"
PDF_PREFIX = "pdf"
PREVIEW_PREFIX = "preview"
ARTIFACT_PREFIXES = ("shot_", "pdf_", "preview_")

# Rendering defaults
DEFAULT_VIEWPORT_WIDTH = 1366
DEFAULT_VIEWPORT_HEIGHT = 768
DEFAULT_PDF_FORMAT = "A4"
DEFAULT_PDF_MARGIN = {"top": "12mm", "right": "12mm", "bottom": "12mm", "left": "12mm"}
