"""Allow ``python -m byvalue_analysis``."""

from byvalue_analysis.main import main

raise SystemExit(main())
