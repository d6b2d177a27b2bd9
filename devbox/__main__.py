"""Allow ``python -m devbox``."""

from .cli import main

main()
