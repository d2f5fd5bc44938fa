# src/aichat/__main__.py
import sys

from aichat.cli import main

sys.exit(main())
