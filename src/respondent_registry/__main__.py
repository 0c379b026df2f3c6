"""Allow running as ``python -m respondent_registry``."""

from respondent_registry.cli.main import cli

if __name__ == "__main__":
    cli()
