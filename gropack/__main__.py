import sys

from gropack.cli import main

sys.exit(main())
