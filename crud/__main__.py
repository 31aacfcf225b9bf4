import sys

from crud.cli import main

sys.exit(main())
