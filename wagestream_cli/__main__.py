import sys

from wagestream_cli.main import main

sys.exit(main())
