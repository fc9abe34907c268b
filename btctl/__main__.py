import sys

from btctl.cli import main

sys.exit(main())
