"""Tests for version consistency."""

import tomllib
from pathlib import Path

import pyopensprinkler


def read_pyproject_version() -> str:
    """Return the project version declared in pyproject.toml."""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    with open(pyproject_path, "rb") as f:
        return tomllib.load(f)["project"]["version"]


class TestVersion:
    """Tests for the package version."""

    def test_version_matches_pyproject(self):
        """Ensure __version__ matches pyproject.toml."""
        declared = read_pyproject_version()

        assert pyopensprinkler.__version__ == declared, (
            f"Version mismatch: package has '{pyopensprinkler.__version__}' "
            f"but pyproject.toml has '{declared}'"
        )

    def test_version_is_numeric_triple(self):
        """Ensure the version is MAJOR.MINOR.PATCH."""
        parts = pyopensprinkler.__version__.split(".")

        assert len(parts) == 3, f"Version '{pyopensprinkler.__version__}' should be X.Y.Z"
        assert all(part.isdigit() for part in parts)
