from .get_paths import (
    get_project_root,
    get_figures_dir,
    get_figures_path,
)

__all__ = [
    "get_project_root",
    "get_figures_dir",
    "get_figures_path",
]
