"""Allow running the watcher with ``python -m pollwatcher``."""

import sys

from .cli import main

sys.exit(main())
