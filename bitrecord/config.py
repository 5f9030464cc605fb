"""
Configuration constants for the bitrecord store.

All values are plain constants meant to be imported (no side effects).
Changing WORD_WIDTH after records have been written invalidates every
stored page layout.
"""

# ----------------------------
# Page geometry
# ----------------------------
WORD_WIDTH = 256                # bits per page word
SUPPORTED_WIDTHS = (8, 16, 32, 64, 128, 256)

# ----------------------------
# Logging
# ----------------------------
LOGGER_NAME = "bitrecord"

# ----------------------------
# Snapshots
# ----------------------------
SNAPSHOT_VERSION = "2.0"
SNAPSHOT_FILE_NAME = "domain_snapshot.json"
BACKUP_DIR_NAME = "backups"
