import sys

from mediahash.main import main

sys.exit(main())
