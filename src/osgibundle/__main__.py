"""Run the CLI with ``python -m osgibundle``."""

import sys

from osgibundle.cli import main

sys.exit(main())
