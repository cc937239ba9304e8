import sys

from qrchitect.cli import main

sys.exit(main())
