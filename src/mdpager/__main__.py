import sys

from mdpager.cli import main

sys.exit(main())
