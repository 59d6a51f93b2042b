import sys

from sidequest.cli import main

sys.exit(main())
