import sys

from keysync.cli import main

sys.exit(main())
