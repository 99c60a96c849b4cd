"""
The package-wide logger. Messages are written to stderr and are not passed to the root logger.
"""

import logging

logger = logging.getLogger("vaultsync")
logger.propagate = False
logger.setLevel(logging.INFO)
logger.addHandler(logging.StreamHandler())
