"""
Allow running the package with: python -m findimagedupes

Examples:
    python -m findimagedupes -R ~/Pictures          # Find duplicates
    python -m findimagedupes config                 # Show user configuration
    python -m findimagedupes config --init          # Create example config file
"""

import sys


def main():
    if len(sys.argv) > 1 and sys.argv[1] == 'config':
        from .user_config import get_user_config

        config = get_user_config()

        if '--init' in sys.argv[2:] or '-i' in sys.argv[2:]:
            if config.create_example_config():
                print("Created example configuration file at:")
                print(f"  {config.config_file_path}")
                print("\nEdit this file to customize findimagedupes settings.")
            else:
                print("Failed to create configuration file.", file=sys.stderr)
                sys.exit(1)
        else:
            print(f"Configuration file: {config.config_file_path}")
            if config.config_file_path.exists():
                print("Status: found")
            else:
                print("Status: not found (using defaults)")
                print("\nRun 'python -m findimagedupes config --init' to create one.")

            print("\nCurrent settings:")
            print(f"  default_threshold: {config.default_threshold}")
            print(f"  default_jobs: {config.default_jobs}")
            print(f"  fingerprint_db: {config.fingerprint_db or '(none)'}")
            print(f"  delimiter: {config.delimiter!r}")
            print(f"  exclude: {config.exclude}")
    else:
        from .cli import main as cli_main
        sys.exit(cli_main())


if __name__ == '__main__':
    main()
