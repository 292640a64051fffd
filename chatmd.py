#!/usr/bin/env python3
from chatmd.cli import main

if __name__ == "__main__":
    main()
