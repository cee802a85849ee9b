"""Allow ``python -m src.cli`` execution; delegates to the sync CLI."""

from src.cli.sync import main

main()
