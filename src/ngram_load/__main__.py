import sys

from ngram_load.cli import main

sys.exit(main())
