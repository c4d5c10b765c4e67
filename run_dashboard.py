#!/usr/bin/env python3
"""Direct launcher for the Energy Budget dashboard.

This script launches Streamlit on ``energy_budget/Home.py`` with the
project root on the import path.
"""

import sys
import subprocess
from pathlib import Path

# Get the project root and energy_budget directory
project_root = Path(__file__).parent.resolve()
app_path = project_root / "energy_budget" / "Home.py"

if __name__ == "__main__":
    sys.path.insert(0, str(project_root))
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(app_path),
    ], cwd=project_root)
