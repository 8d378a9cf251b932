#!/usr/bin/env python3
from punyblog.cli import main

if __name__ == "__main__":
    main()
