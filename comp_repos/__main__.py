import sys

from comp_repos.cli.main import main

sys.exit(main())
