"""
Version information for Keyper Service.
"""

import os

__version__ = "1.0.0"

# Set at build/deploy time
GIT_COMMIT = os.getenv("KEYPER_GIT_COMMIT", "")
