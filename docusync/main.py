"""Entry point for DocuSync.

Delegates to the Click command group, which initializes configuration
and logging before running a subcommand.
"""

from docusync.cli.commands import docusync


def main() -> None:
    """Launch the CLI."""
    docusync()


if __name__ == "__main__":
    main()
