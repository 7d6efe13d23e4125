import sys

from .text_browser import main

sys.exit(main())
