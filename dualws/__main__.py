import sys

from dualws.cli import main

sys.exit(main())
