import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]

COMPONENTS = ["warehouse", "location", "stock", "ledger", "alerts", "transfer"]


def _install(session: nox.Session) -> None:
    """Install the project with the test group into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--with",
        "test",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no command processing)."""
    _install(session)
    session.run("pytest", *[f"tests/{component}/domain/" for component in COMPONENTS])


@nox.session(python=PYTHON_VERSIONS)
def tests_application(session: nox.Session) -> None:
    """Run command handler and query tests."""
    _install(session)
    session.run("pytest", "-m", "application")
