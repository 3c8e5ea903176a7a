"""Allow ``python -m where2play.cli`` execution."""

from where2play.cli.search import main

main()
