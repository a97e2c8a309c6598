"""Allow ``python -m alu_analysis``."""

from alu_analysis.main import main

if __name__ == "__main__":
    raise SystemExit(main())
