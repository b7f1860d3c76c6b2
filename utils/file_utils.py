"""
File Utilities Module
Source collection and file I/O for the command line and web layers.
"""

import os
from pathlib import Path
from typing import Dict, Iterable, List

# File extension categories
EXTENSION_GROUPS = {
    'markup': {'.html', '.htm'},
    'jsx': {'.jsx', '.tsx'},
    'svelte': {'.svelte'},
    'css': {'.css'},
}

SOURCE_EXTENSIONS = sorted(EXTENSION_GROUPS['markup'] | EXTENSION_GROUPS['jsx'] | EXTENSION_GROUPS['svelte'])

# Build output and dependency directories never hold sources worth scanning
SKIP_DIRS = {'node_modules', '_build', 'target', '.git', '.mooncakes', 'dist'}

def normalize_path(path: str | Path) -> Path:
    """Convert string path to normalized Path object."""
    return Path(path).resolve()

def is_hidden(path: Path) -> bool:
    """Check if a file or directory is hidden."""
    return path.name.startswith('.')

def get_all_files_by_extension(path: str | Path, extensions: Iterable[str],
                               skip_dirs: Iterable[str] = SKIP_DIRS,
                               exclude_suffixes: Iterable[str] = ()) -> List[Path]:
    """
    Recursively collect all files with specified extensions.

    Args:
        path: Base directory path (a single file is returned as-is if it matches)
        extensions: List of file extensions to collect (e.g., ['.html', '.jsx'])
        skip_dirs: Directory names that are never descended into
        exclude_suffixes: File name endings to leave out (e.g., ['_test.mbt'])

    Returns:
        Sorted list of Path objects for matching files
    """
    base_path = normalize_path(path)
    extensions = [ext.lower() for ext in extensions]
    skip_dirs = set(skip_dirs)
    exclude_suffixes = tuple(exclude_suffixes)

    def wanted(name: str) -> bool:
        lowered = name.lower()
        if exclude_suffixes and lowered.endswith(exclude_suffixes):
            return False
        return any(lowered.endswith(ext) for ext in extensions)

    if base_path.is_file():
        return [base_path] if wanted(base_path.name) else []

    matching_files = []
    for root, dirs, files in os.walk(base_path):
        dirs[:] = sorted(d for d in dirs if d not in skip_dirs and not is_hidden(Path(root) / d))
        for file in files:
            file_path = Path(root) / file
            if is_hidden(file_path):
                continue
            if wanted(file):
                matching_files.append(file_path)

    return sorted(matching_files)

def collect_files(base_path: str | Path) -> Dict[str, List[Path]]:
    """
    Collect and categorize files from a directory.

    Returns:
        Dictionary with categorized file paths:
        {
            'markup': [html files],
            'jsx': [jsx/tsx files],
            'svelte': [svelte files],
            'css': [css files]
        }
    """
    result = {category: [] for category in EXTENSION_GROUPS}
    all_extensions = set().union(*EXTENSION_GROUPS.values())
    for file_path in get_all_files_by_extension(base_path, all_extensions):
        suffix = file_path.suffix.lower()
        for category, extensions in EXTENSION_GROUPS.items():
            if suffix in extensions:
                result[category].append(file_path)
                break
    return result

def ensure_directory(directory: Path) -> None:
    """Ensure directory exists, create if necessary."""
    directory.mkdir(parents=True, exist_ok=True)

def read_file_content(file_path: Path) -> str:
    """
    Read file content as UTF-8.

    Raises:
        FileNotFoundError: If file doesn't exist
        UnicodeDecodeError: If file isn't valid UTF-8
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return f.read()

def write_file_content(file_path: Path, content: str) -> None:
    ensure_directory(Path(file_path).parent)
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(content)

def load_sources(paths: Iterable[str | Path]) -> List[Dict[str, str]]:
    """Read every supported source under the given files/directories as [{'path', 'content'}]."""
    sources = []
    for path in paths:
        for file_path in get_all_files_by_extension(path, SOURCE_EXTENSIONS):
            sources.append({'path': str(file_path), 'content': read_file_content(file_path)})
    return sources
