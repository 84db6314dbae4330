#!/usr/bin/env python3
"""
Run the labmath calculators from a source checkout.

Equivalent to the installed ``labmath`` console script, e.g.::

    python main.py mw "CuSO4·5H2O"
    python main.py recipe pbs-10x --csv output
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from labmath.cli import main

if __name__ == "__main__":
    sys.exit(main())
