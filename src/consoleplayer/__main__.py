"""Allow ``python -m consoleplayer``."""

import sys

from consoleplayer.app import run

sys.exit(run())
