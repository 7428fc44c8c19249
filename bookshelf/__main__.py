import sys

from bookshelf.app.main import main

sys.exit(main())
