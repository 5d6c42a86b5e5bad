import sys

from kdo_dado.cli import main

sys.exit(main())
