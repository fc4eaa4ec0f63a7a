"""Allow ``python -m sgdeploy`` to behave like the plugin entry point."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
