"""Noxfile for the security event processor.

Provides automated sessions for:
- Linting and formatting
- Testing with coverage
- Type checking
- Security scanning
- Package building
"""

import nox

# Python versions to test against
PYTHON_VERSIONS = ["3.11"]

# Common locations
SRC_DIR = "src"
TESTS_DIR = "tests"
PACKAGES = ["logbatch", "openreports", "securityevent"]


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    """Run the test suite with coverage."""
    session.install(".")
    session.install("pytest", "pytest-cov", "pytest-mock")

    session.run(
        "pytest",
        *[f"--cov={package}" for package in PACKAGES],
        "--cov-report=term-missing",
        "--cov-report=html",
        "--cov-fail-under=80",
        TESTS_DIR,
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS)
def lint(session):
    """Run linting with ruff."""
    session.install("ruff")
    session.run("ruff", "check", SRC_DIR, TESTS_DIR)


@nox.session(python=PYTHON_VERSIONS)
def format(session):
    """Format code with black and ruff."""
    session.install("black", "ruff")
    session.run("black", SRC_DIR, TESTS_DIR)
    session.run("ruff", "check", "--fix", SRC_DIR, TESTS_DIR)


@nox.session(python=PYTHON_VERSIONS)
def typecheck(session):
    """Run type checking with mypy."""
    session.install(".")
    session.install("mypy", "types-PyYAML")
    session.run("mypy", *[f"{SRC_DIR}/{package}" for package in PACKAGES])


@nox.session(python=PYTHON_VERSIONS)
def security(session):
    """Run security checks."""
    session.install("bandit[toml]")
    session.run("bandit", "-r", SRC_DIR)


@nox.session(python=PYTHON_VERSIONS)
def package(session):
    """Build the package."""
    session.install("build")
    session.run("python", "-m", "build")


@nox.session
def clean(session):
    """Clean up build artifacts and cache files."""
    import shutil
    from pathlib import Path

    clean_dirs = [
        ".pytest_cache",
        ".coverage",
        "htmlcov",
        "dist",
        "build",
        "*.egg-info",
        ".mypy_cache",
        ".ruff_cache",
        "__pycache__",
    ]

    for pattern in clean_dirs:
        for path in Path(".").glob(f"**/{pattern}"):
            if path.is_dir():
                session.log(f"Removing directory: {path}")
                shutil.rmtree(path)
            elif path.is_file():
                session.log(f"Removing file: {path}")
                path.unlink()


# Default session when running `nox` without arguments
nox.options.sessions = ["tests", "lint", "typecheck"]
