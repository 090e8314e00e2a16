import sys

from rerun_except.cli import main

sys.exit(main())
