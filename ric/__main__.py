"""Allow ``python -m ric``."""

import sys

from .main import main

sys.exit(main())
