import sys

from startupflame.cli import main

sys.exit(main())
