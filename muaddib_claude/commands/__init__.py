"""Subcommands for the ``muaddib`` CLI, loaded lazily by ``muaddib_claude.cli``."""
