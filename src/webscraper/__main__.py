import sys

from webscraper.cli import main

sys.exit(main())
