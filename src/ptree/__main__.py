"""Allow running ptree with ``python -m ptree``."""

from ptree.app import main

main()
