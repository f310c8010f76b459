import sys

from zapsender.main import main

sys.exit(main())
