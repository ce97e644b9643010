import sys

from mirror_resolver.cli import main

sys.exit(main())
