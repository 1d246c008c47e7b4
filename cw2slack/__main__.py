import sys

from cw2slack.main import main

sys.exit(main())
