"""Allow ``python -m helloworld``."""

from helloworld.main import main

main()
