"""Main entry point for the seed_recovery package."""
from seed_recovery.cli import cli


def main():
    """Main entry point function."""
    cli()


if __name__ == "__main__":
    main()
