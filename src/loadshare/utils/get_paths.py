from pathlib import Path


def get_project_root():
    """Returns the project root path"""
    return Path(__file__).parent.parent.parent.parent


def get_figures_dir():
    """Returns the figures directory path"""
    root = get_project_root()
    return root / "figures"


def get_figures_path(filename, figures_dir=None):
    """Return a path in the figures directory, creating the directory if needed."""
    figures_dir = Path(figures_dir) if figures_dir is not None else get_figures_dir()
    figures_dir.mkdir(parents=True, exist_ok=True)
    return figures_dir / f"{filename}"
