import sys

from cosmo_x.cli import main

sys.exit(main())
