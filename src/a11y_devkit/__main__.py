# Allows `python -m a11y_devkit`
import sys

from a11y_devkit.cli import main

sys.exit(main())
