"""
TrackerCore CLI - Inspect schema rules and context manifests.

Commands:
    trackercore rule        Validate rules, parse schemas, match schemas against rules
    trackercore contexts    Resolve a context manifest for a sample event
"""

import click

from .contexts import contexts
from .rule import rule


@click.group()
@click.version_option(package_name="trackercore")
def main():
    """TrackerCore - Context resolution and payload building for analytics trackers."""
    pass


main.add_command(rule)
main.add_command(contexts)


if __name__ == "__main__":
    main()
