"""Environment bootstrap module.

Importing this module loads variables from the file named by CATALOG_ENV_FILE
(``.env`` by default) so the rest of the app can read them with os.getenv.
Variables already set in the process environment win.
"""

import os

from dotenv import load_dotenv as _load_dotenv

_load_dotenv(os.getenv("CATALOG_ENV_FILE", ".env"), override=False)
