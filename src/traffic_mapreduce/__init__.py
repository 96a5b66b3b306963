"""Map/reduce and visualization workflows over traffic-sensor readings.

Thread-parallel inference and grouped reductions are thin layers over joblib,
pandas and scikit-learn; the runnable entry points live under /scripts.
"""

from .config import ProjectConfig
