"""Root conftest — points the registry at a temp dir BEFORE scaffoldcli is imported.

scaffold_dir() falls back to ~/.scaffold-cli, so every test run must be
redirected away from the real user registry.
"""

import os
import tempfile

# Force-set (not setdefault) so a developer's real registry never leaks into tests
os.environ["SCAFFOLD_CLI_DIR"] = tempfile.mkdtemp(prefix="scaffoldcli-test-")
for _var in ("https_proxy", "HTTPS_PROXY", "SCAFFOLD_LOG_LEVEL"):
    os.environ.pop(_var, None)
