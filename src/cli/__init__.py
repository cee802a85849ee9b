"""CLI tools for the adeSync pipeline.

- ``python -m src.cli.sync`` -- run syncs, parse lineups, match names, and
  inspect run history from the command line.
"""
