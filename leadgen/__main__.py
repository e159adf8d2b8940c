import sys

from leadgen.cli import main

sys.exit(main())
