#!/usr/bin/env python3
import sys

from subway_access.build import main

if __name__ == "__main__":
    sys.exit(main())
