"""pyproject.toml wiring: declared test tools are actually used."""
from pathlib import Path

PYPROJECT = Path(__file__).parent.parent / "pyproject.toml"


def test_pytest_runs_with_coverage():
    text = PYPROJECT.read_text()
    assert '"pytest-cov' in text
    assert 'addopts = "--cov=revu' in text
    assert "[tool.coverage.run]" in text


def test_package_metadata_has_no_design_ledger_readme():
    assert "readme" not in PYPROJECT.read_text()
