"""Allow ``python -m certnag``."""

from certnag.cli.main import main

main()
