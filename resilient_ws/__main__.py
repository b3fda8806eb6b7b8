import sys

from resilient_ws.main import main

sys.exit(main())
