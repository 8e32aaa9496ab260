from invoke import task
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.absolute()


def project_relative(path):
    """Convert a relative path to an absolute path relative to the project root."""
    return str(PROJECT_ROOT / path)


@task
def install(c):
    """Install the project in editable mode with test dependencies."""
    c.run(f"pip install -e {project_relative('.')}[test,dev]")


@task
def check(c):
    """Run Django system checks."""
    manage_py = project_relative("manage.py")
    c.run(f"python {manage_py} check")


@task
def shell(c):
    """Start Django shell."""
    manage_py = project_relative("manage.py")
    c.run(f"python {manage_py} shell")


@task
def test(c, path=None):
    """Run Django tests. Optionally specify a specific test path."""
    manage_py = project_relative("manage.py")
    settings = "--settings=leaguehub.test_settings"
    if path:
        c.run(f"python {manage_py} test {settings} {path}")
    else:
        c.run(f"python {manage_py} test {settings}")


@task
def pytest(c, path=None):
    """Run the test suite with pytest."""
    c.run(f"pytest {path or project_relative('leaguehub')}")


@task
def standings(c, fixture, json=False):
    """Compute the standings table of a JSON season fixture."""
    manage_py = project_relative("manage.py")
    flags = " --json" if json else ""
    c.run(f"python {manage_py} compute_standings {fixture}{flags}")


@task
def simulate(c, sport="SOCCER", teams=8, seed=4545, output=None):
    """Simulate a season and print its standings."""
    manage_py = project_relative("manage.py")
    command = (
        f"python {manage_py} simulate_season --sport {sport} --teams {teams} --seed {seed}"
    )
    if output:
        command += f" --output {output}"
    c.run(command)
