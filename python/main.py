#!/usr/bin/env python3
import sys

from ecr_credentials.cli import main

if __name__ == "__main__":
    sys.exit(main())
