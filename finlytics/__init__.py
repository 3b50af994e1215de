"""Top-level package for Finlytics.

Finlytics tracks transactions and subscriptions and derives monthly
aggregates from them.  The primary modules are:

* ``billing`` – billing-cycle normalisation for subscriptions
* ``categories`` – category roll-ups with ``Other`` bucketing
* ``series`` / ``forecast`` – monthly buckets and linear trend projection
* ``affordability`` / ``snapshot`` – safe budgets and purchase checks
* ``goals`` / ``reports`` – savings-goal progress and report metrics
* ``db`` / ``loaders`` – the SQLite store and the functions that feed it
  into the computations

To print the current figures for the configured database run:

```bash
python scripts/show_snapshot.py
```
"""

from . import affordability  # noqa: F401  # re-exported for convenience
from . import billing  # noqa: F401
from . import categories  # noqa: F401
from . import forecast  # noqa: F401
from . import series  # noqa: F401
from . import snapshot  # noqa: F401

__all__ = ["affordability", "billing", "categories", "forecast", "series", "snapshot"]

__version__ = "0.1.0"
