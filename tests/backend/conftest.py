import os
import sys
import tempfile

# main builds its application state at import time; keep it out of the source tree.
_STORAGE_DIR = tempfile.mkdtemp(prefix="autolinker-tests-")
os.environ.setdefault("AUTOLINKER_VAULT_DIR", os.path.join(_STORAGE_DIR, "vault"))
os.environ.setdefault("AUTOLINKER_SETTINGS_PATH", os.path.join(_STORAGE_DIR, "settings.json"))

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))
