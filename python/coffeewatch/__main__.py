import sys

from coffeewatch.cli import main

sys.exit(main())
