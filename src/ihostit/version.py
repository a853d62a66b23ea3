import subprocess
from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Installed package version, else the short git commit, else "dev"."""
    try:
        return version("ihostit")
    except PackageNotFoundError:
        pass

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return "dev"
