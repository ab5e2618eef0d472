"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local lazywild package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of lazywild modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("lazywild"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _isolate_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep the developer's global config and LAZYWILD__ env vars out of tests."""
    import lazywild.config.loader as loader

    for key in list(os.environ):
        if key.upper().startswith("LAZYWILD__"):
            monkeypatch.delenv(key)
    global_config = tmp_path_factory.mktemp("global") / "config.yaml"
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", global_config)
