#!/usr/bin/env python
"""Entry point script to run ProFlow from a source checkout."""

import sys

from proflow.main import main

if __name__ == "__main__":
    sys.exit(main())
