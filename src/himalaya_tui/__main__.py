"""Allow ``python -m himalaya_tui``."""

import sys

from himalaya_tui.app import main

sys.exit(main())
