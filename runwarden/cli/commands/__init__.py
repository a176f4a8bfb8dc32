"""runwarden CLI subcommands."""
