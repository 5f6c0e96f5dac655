"""Allow ``python -m pma``."""

import sys

from pma.cli import main

sys.exit(main())
