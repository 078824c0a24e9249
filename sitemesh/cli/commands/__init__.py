"""Individual ``sitemesh`` subcommands."""
