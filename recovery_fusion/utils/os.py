"""Operating system utility functions for the recovery fusion engine."""

import os


def find_project_root(start_path: str | None = None) -> str:
    """Find the project root directory by looking for git or packaging markers.

    Searches upward from the given start path (or current file location)
    until it finds a directory containing either a .git directory or a
    setup.py file.

    :param start_path: Directory to start searching from, defaults to current file location
    :type start_path: Optional[str]
    :return: Absolute path to the project root directory
    :rtype: str
    :raises RuntimeError: If project root cannot be found

    Example:
        >>> root = find_project_root()
        >>> print(root)  # /path/to/recovery-fusion
    """
    if start_path is None:
        current_directory = os.path.abspath(os.path.dirname(__file__))
    else:
        current_directory = os.path.abspath(start_path)

    while True:
        git_directory = os.path.join(current_directory, ".git")
        setup_file = os.path.join(current_directory, "setup.py")

        if os.path.isdir(git_directory) or os.path.isfile(setup_file):
            return current_directory

        parent_directory = os.path.dirname(current_directory)
        if parent_directory == current_directory:
            raise RuntimeError("Project root not found")
        current_directory = parent_directory
