"""Shared constants for mirror discovery and probing."""

# Host suffixes accepted by the address pattern
ADDRESS_SUFFIXES = ("org", "net", "to")

# Prefix family that is systematically unreliable, and the families that
# usually serve the same content. The first reliable prefix is the default
# substitution.
UNRELIABLE_PREFIXES = ("k",)
RELIABLE_PREFIXES = ("n", "x", "t")

# Prefix letters cycled through at the same server index
FALLBACK_PREFIXES = ("n", "x", "t", "s", "w", "m", "c", "u", "k")

# Known-equivalent mirror domains, as "root.suffix"
FALLBACK_ROOTS = (
    "mbdny.org",
    "mbrtz.org",
    "bato.to",
    "mbwbm.org",
    "mbznp.org",
    "mbqgu.org",
    "mpfip.org",
    "mpizz.org",
    "mpmok.org",
    "mpqom.org",
    "mpqsc.org",
    "mprnm.org",
    "mpubn.org",
    "mpujj.org",
    "mpvim.org",
    "mpypl.org",
)

# Candidate priority classes (lower is tried first)
PRIORITY_CACHED = 0
PRIORITY_RELIABLE_PREFIX = 1
PRIORITY_ALTERNATE_PREFIX = 2
PRIORITY_NEAR_INDEX = 3
PRIORITY_MIRROR_ROOT = 4
PRIORITY_WIDE_INDEX = 5

# Search bounds
MAX_ATTEMPTS = 30
MAX_SERVER_INDEX = 15
NEAR_INDEX_LIMIT = 5
GROUP_PATH_SEGMENTS = 3

# Timing (milliseconds)
PROBE_TIMEOUT_MS = 5000
LATE_PROBE_EXTRA_MS = 1000
LATE_PROBE_AFTER = 5
RETRY_DELAY_MS = 1000
MAX_CONSECUTIVE_TIMEOUTS = 8

# Integration delays (milliseconds)
CHECK_DELAY_MS = 1000
VERIFY_DELAY_MS = 2000
ERROR_DEBOUNCE_MS = 100
CHANGE_DELAY_MS = 500

# Smallest body that can be a real image; a 1x1 GIF placeholder is 43 bytes
MIN_CONTENT_BYTES = 100
# Largest dimension still treated as a tracking-pixel placeholder
PLACEHOLDER_DIMENSION = 1
