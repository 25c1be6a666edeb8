import sys

from hencrypt.cli import main

sys.exit(main())
