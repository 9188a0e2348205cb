# profile_cutter/__main__.py
# Package entrypoint so you can run:
#   python -m profile_cutter --help
#
# Examples:
#   python -m profile_cutter --items items.csv --stock 6100,6500 --algorithm bfd
#   python -m profile_cutter --job job.json --out out/ --pareto

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    main()
