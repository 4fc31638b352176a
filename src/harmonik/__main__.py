"""Allow ``python -m harmonik``."""

import sys

from harmonik.cli import main

sys.exit(main())
