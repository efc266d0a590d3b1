"""Top‑level package for the Cashbook dashboard.

The primary modules are:

* ``allocation`` – spreads installment expenses across months
* ``analytics`` – monthly totals, category breakdown and card statements
* ``store`` – the in-memory record store for a session
* ``export`` – multi-sheet Excel export
* ``ui`` – Streamlit components tying everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run cashbook/Home.py
```
"""

from . import allocation  # noqa: F401  # re-exported for convenience
from . import analytics  # noqa: F401  # re-exported for convenience
from . import store  # noqa: F401  # re-exported for convenience

__all__ = ["allocation", "analytics", "store"]
