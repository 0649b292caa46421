import importlib

import pytest


DEPENDENCIES = [
    ("pandas", "pandas", "Chunked CSV reading and report tables"),
    ("numpy", "numpy", "Partition splitting and column conversion"),
    ("seaborn", "seaborn", "Bar chart styling in plot_generation.py"),
    ("matplotlib", "matplotlib", "PNG output for --plot"),
]


@pytest.mark.parametrize("module_name,pip_name,reason", DEPENDENCIES)
def test_core_dependencies_installed(module_name: str, pip_name: str, reason: str) -> None:
    """
    Fail early when a required dependency is missing so the report scripts don't break later.
    """
    try:
        importlib.import_module(module_name)
    except ImportError as exc:  # pragma: no cover - triggers only when missing/broken
        pytest.fail(
            f"Missing or broken dependency '{module_name}' ({reason}). "
            f"Install with `python3 -m pip install {pip_name}`. "
            f"Import error: {exc}"
        )
