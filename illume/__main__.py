import sys

from illume.cli import main

sys.exit(main())
