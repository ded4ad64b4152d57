import sys

from fileexp.cli import main

sys.exit(main())
