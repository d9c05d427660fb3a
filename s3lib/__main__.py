import sys

from s3lib.cli import main

sys.exit(main())
